"""Shared pytest fixtures for the lexigoal test suite.

Provides:
- settings: default Settings instance
- solver / branch_and_bound / lexicographic: wired engine objects
- thruster_positions / thruster_directions: the 12-thruster symmetric rig
- thruster_matrix: 6×12 force/torque coefficient matrix of that rig
- three_thruster_matrix: 6×3 matrix of a small three-thruster plate
"""

import numpy as np
import pytest

from lexigoal.config.settings import Settings
from lexigoal.engine.branch_and_bound import BranchAndBound
from lexigoal.engine.continuous import ContinuousPrioritySolver
from lexigoal.engine.lexicographic import LexicographicSolver


def force_torque_matrix(positions: np.ndarray, directions: np.ndarray) -> np.ndarray:
    """Rows Fx, Fy, Fz, Tx, Ty, Tz; one column per thruster (torque = p × d)."""
    torques = np.cross(positions, directions)
    return np.vstack([directions.T, torques.T])


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def solver(settings: Settings) -> ContinuousPrioritySolver:
    return ContinuousPrioritySolver(settings=settings)


@pytest.fixture
def branch_and_bound(solver: ContinuousPrioritySolver, settings: Settings) -> BranchAndBound:
    return BranchAndBound(solver, settings=settings)


@pytest.fixture
def lexicographic(settings: Settings) -> LexicographicSolver:
    return LexicographicSolver(settings=settings)


@pytest.fixture
def thruster_directions() -> np.ndarray:
    return np.array([
        [1.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [-1.0, 0.0, 0.0],
        [-1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, -1.0, 0.0],
        [0.0, -1.0, 0.0],
        [0.0, 0.0, 1.0],
        [0.0, 0.0, 1.0],
        [0.0, 0.0, -1.0],
        [0.0, 0.0, -1.0],
    ])


@pytest.fixture
def thruster_positions() -> np.ndarray:
    return np.array([
        [1.0, 0.5, 0.5],
        [1.0, -0.5, -0.5],
        [-1.0, 0.5, -0.5],
        [-1.0, -0.5, 0.5],
        [0.5, 1.0, -0.5],
        [-0.5, 1.0, 0.5],
        [0.5, -1.0, 0.5],
        [-0.5, -1.0, -0.5],
        [0.5, -0.5, 1.0],
        [-0.5, 0.5, 1.0],
        [0.5, 0.5, -1.0],
        [-0.5, -0.5, -1.0],
    ])


@pytest.fixture
def thruster_matrix(thruster_positions: np.ndarray, thruster_directions: np.ndarray) -> np.ndarray:
    return force_torque_matrix(thruster_positions, thruster_directions)


@pytest.fixture
def three_thruster_matrix() -> np.ndarray:
    """Three +z thrusters under a plate; only torque about x separates them."""
    positions = np.array([[1.0, -1.0, 0.0], [-1.0, -1.0, 0.0], [0.0, 1.0, 0.0]])
    directions = np.array([[0.0, 0.0, 1.0]] * 3)
    return force_torque_matrix(positions, directions)
