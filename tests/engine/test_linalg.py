"""Tests for the float linear-algebra kernels."""

import numpy as np
import pytest

from lexigoal.engine.linalg import (
    gauss_solve,
    independent_rows,
    least_squares,
    regularized_projection,
    row_reduce,
    solve_square,
)


class TestRowReduce:
    def test_partial_pivoting_tracks_rows(self) -> None:
        work, b, pivots, rows = row_reduce(np.array([[0.0, 1.0], [2.0, 0.0]]), np.array([3.0, 4.0]))
        assert pivots == [0, 1]
        assert rows == [1, 0]
        np.testing.assert_allclose(work, np.eye(2))
        np.testing.assert_allclose(b, [2.0, 3.0])

    def test_independent_rows_drop_multiples(self) -> None:
        matrix = np.array([[1.0, 1.0], [2.0, 2.0], [0.0, 1.0]])
        assert independent_rows(matrix) == [1, 2]

    def test_independent_rows_of_empty_matrix(self) -> None:
        assert independent_rows(np.zeros((0, 3))) == []


class TestGaussSolve:
    def test_free_unknowns_at_zero(self) -> None:
        solution = gauss_solve(np.array([[1.0, 1.0]]), np.array([2.0]))
        np.testing.assert_allclose(solution, [2.0, 0.0])

    def test_inconsistent_returns_none(self) -> None:
        matrix = np.array([[1.0, 1.0], [1.0, 1.0]])
        assert gauss_solve(matrix, np.array([1.0, 2.0])) is None

    def test_consistent_redundant_rows(self) -> None:
        matrix = np.array([[1.0, 1.0], [2.0, 2.0]])
        solution = gauss_solve(matrix, np.array([1.0, 2.0]))
        assert solution is not None
        assert solution.sum() == pytest.approx(1.0)

    def test_no_rows(self) -> None:
        np.testing.assert_array_equal(gauss_solve(np.zeros((0, 2)), np.zeros(0)), [0.0, 0.0])


class TestProjection:
    def test_closest_point_on_plane(self) -> None:
        projected = regularized_projection(np.array([[1.0, 1.0]]), np.array([2.0]), np.zeros(2))
        np.testing.assert_allclose(projected, [1.0, 1.0], atol=1e-6)

    def test_no_rows_returns_copy_of_start(self) -> None:
        start = np.array([0.5, 0.25])
        projected = regularized_projection(np.zeros((0, 2)), np.zeros(0), start)
        np.testing.assert_array_equal(projected, start)
        assert projected is not start


class TestLeastSquares:
    def test_minimum_norm(self) -> None:
        solution = least_squares(np.array([[1.0, 1.0]]), np.array([2.0]))
        np.testing.assert_allclose(solution, [1.0, 1.0])


class TestSolveSquare:
    def test_nonsingular(self) -> None:
        solution = solve_square(np.array([[2.0, 0.0], [0.0, 4.0]]), np.array([2.0, 4.0]))
        np.testing.assert_allclose(solution, [1.0, 1.0])

    def test_singular_returns_none(self) -> None:
        assert solve_square(np.array([[1.0, 2.0], [2.0, 4.0]]), np.array([1.0, 2.0])) is None

    def test_many_right_hand_sides(self) -> None:
        rhs = np.array([[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]])
        solution = solve_square(np.eye(2), rhs)
        assert solution.shape == (2, 3)
        np.testing.assert_allclose(solution, rhs)
