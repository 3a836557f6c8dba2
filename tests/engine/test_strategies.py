"""Tests for candidate scoring and the continuous search strategies."""

import numpy as np
import pytest

from lexigoal.config.settings import Settings
from lexigoal.engine.strategies import (
    CandidateScorer,
    Incumbent,
    SearchPhase,
    box_vertices,
    fixed_free_enumeration,
    fixing_enumeration,
    gauss_elimination,
    least_squares_projection,
    overdetermined_enumeration,
    underdetermined_enumeration,
    vertex_enumeration,
)


def _make_scorer(
    *,
    equality: list[list[float]] | None = None,
    equality_values: list[float] | None = None,
    target: list[float] | None = None,
    usage_weight: float = 0.0,
    lower: list[float] | None = None,
    upper: list[float] | None = None,
    minimize_soft: bool = False,
) -> CandidateScorer:
    lower_arr = np.array(lower if lower is not None else [0.0, 0.0])
    upper_arr = np.array(upper if upper is not None else [1.0, 1.0])
    n = lower_arr.shape[0]
    phase = SearchPhase(
        equality_matrix=np.array(equality, dtype=float).reshape(-1, n) if equality else np.zeros((0, n)),
        equality_values=np.array(equality_values or [], dtype=float),
        target=np.array(target, dtype=float) if target is not None else None,
        soft_matrix=np.zeros((0, n)),
        soft_values=np.zeros(0),
        usage_weight=usage_weight,
        minimize_soft=minimize_soft,
    )
    return CandidateScorer(phase, lower_arr, upper_arr, feasibility_tolerance=1e-6)


def _as_set(points: np.ndarray) -> set[tuple[float, ...]]:
    return {tuple(round(float(v), 9) for v in p) for p in points}


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestCandidateScorer:
    def test_infeasible_scores_minus_infinity(self) -> None:
        scorer = _make_scorer(target=[1.0, 0.0])
        scores = scorer.score(np.array([[1.0, 0.0], [2.0, 0.0]]))
        assert scores[0] == pytest.approx(1.0)
        assert scores[1] == -np.inf

    def test_equality_residual_checked(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        feasible = scorer.feasible(np.array([[0.5, 0.5], [1.0, 1.0]]))
        assert feasible.tolist() == [True, False]

    def test_usage_penalty(self) -> None:
        scorer = _make_scorer(target=[1.0, 0.0], usage_weight=0.5)
        assert scorer.score(np.array([[1.0, 1.0]]))[0] == pytest.approx(0.0)

    def test_ceiling_over_box(self) -> None:
        assert _make_scorer(target=[1.0, -1.0]).ceiling() == pytest.approx(1.0)
        offset = _make_scorer(target=[1.0, 0.0], usage_weight=0.5, lower=[1.0, 1.0], upper=[2.0, 2.0])
        assert offset.ceiling() == pytest.approx(1.0)

    def test_vertices_exact(self) -> None:
        assert _make_scorer(target=[1.0, 0.0]).vertices_exact()
        assert not _make_scorer(target=[1.0, 0.0], lower=[-1.0, 0.0]).vertices_exact()
        assert not _make_scorer(equality=[[1.0, 0.0]], equality_values=[0.0]).vertices_exact()
        assert not _make_scorer(minimize_soft=True).vertices_exact()


class TestIncumbent:
    def test_tie_prefers_lower_usage(self) -> None:
        incumbent = Incumbent(_make_scorer(target=[1.0, 0.0]), improvement_tolerance=1e-9)
        assert incumbent.offer(np.array([[1.0, 1.0], [1.0, 0.0]])) == 2
        np.testing.assert_array_equal(incumbent.point, [1.0, 0.0])

    def test_equal_candidate_does_not_replace(self) -> None:
        incumbent = Incumbent(_make_scorer(target=[1.0, 1.0]), improvement_tolerance=1e-9)
        incumbent.offer(np.array([[1.0, 0.0]]))
        incumbent.offer(np.array([[0.0, 1.0]]))
        np.testing.assert_array_equal(incumbent.point, [1.0, 0.0])

    def test_infeasible_batch(self) -> None:
        incumbent = Incumbent(_make_scorer(), improvement_tolerance=1e-9)
        assert incumbent.offer(np.array([[5.0, 5.0]])) == 0
        assert not incumbent.found
        assert incumbent.offer(np.empty((0, 2))) == 0

    def test_reached_ceiling(self) -> None:
        scorer = _make_scorer(target=[1.0, 1.0])
        incumbent = Incumbent(scorer, improvement_tolerance=1e-9)
        incumbent.offer(np.array([[1.0, 0.0]]))
        assert not incumbent.reached(scorer.ceiling())
        incumbent.offer(np.array([[1.0, 1.0]]))
        assert incumbent.reached(scorer.ceiling())


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class TestBoxVertices:
    def test_bit_pattern_order(self) -> None:
        vertices = box_vertices(np.array([0.0, 0.0]), np.array([1.0, 2.0]))
        np.testing.assert_array_equal(vertices, [[0.0, 0.0], [1.0, 0.0], [0.0, 2.0], [1.0, 2.0]])

    def test_limit(self) -> None:
        assert box_vertices(np.zeros(3), np.ones(3), limit=2).shape == (2, 3)

    def test_vertex_enumeration_respects_size_limit(self) -> None:
        scorer = _make_scorer(lower=[0.0] * 3, upper=[1.0] * 3)
        assert vertex_enumeration(scorer, Settings(VERTEX_ENUMERATION_LIMIT=2)).shape == (0, 3)
        assert vertex_enumeration(scorer, Settings()).shape == (8, 3)


class TestEqualityStrategies:
    def test_gauss_anchors_at_both_bounds(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        points = gauss_elimination(scorer, Settings())
        assert _as_set(points) == {(1.0, 0.0), (0.0, 1.0)}

    def test_gauss_without_equalities_is_empty(self) -> None:
        assert gauss_elimination(_make_scorer(), Settings()).shape == (0, 2)

    def test_projection_from_midpoint(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        np.testing.assert_allclose(least_squares_projection(scorer, Settings()), [[0.5, 0.5]], atol=1e-6)

    def test_projection_clipped_to_box(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[4.0])
        points = least_squares_projection(scorer, Settings())
        np.testing.assert_allclose(points, [[1.0, 1.0]])

    def test_fixed_free_basic_solutions(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        points = fixed_free_enumeration(scorer, Settings())
        assert points.shape == (4, 2)
        assert _as_set(points) == {(1.0, 0.0), (0.0, 1.0)}

    def test_fixed_free_cap(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        assert fixed_free_enumeration(scorer, Settings(FIXED_FREE_CAP=1)).shape[0] == 1

    def test_fixing_enumeration_counts(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        assert fixing_enumeration(scorer, Settings()).shape == (9, 2)
        assert fixing_enumeration(scorer, Settings(FIXING_SAMPLE_CAP=3)).shape == (3, 2)

    def test_overdetermined_needs_more_rows_than_columns(self) -> None:
        scorer = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        assert overdetermined_enumeration(scorer, Settings()).shape == (0, 2)
        tall = _make_scorer(
            equality=[[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]],
            equality_values=[1.0, 0.0, 1.0],
        )
        assert overdetermined_enumeration(tall, Settings()).shape[0] > 0

    def test_underdetermined_needs_target(self) -> None:
        plain = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0])
        assert underdetermined_enumeration(plain, Settings()).shape == (0, 2)
        targeted = _make_scorer(equality=[[1.0, 1.0]], equality_values=[1.0], target=[1.0, 0.0])
        assert underdetermined_enumeration(targeted, Settings()).shape == (9, 2)
