"""Shared enums and base model used across lexigoal."""

from enum import StrEnum

from pydantic import BaseModel


# --- Shared enums ---


class GoalSense(StrEnum):
    """Direction of a goal row."""

    MAXIMIZE = "MAXIMIZE"
    MINIMIZE = "MINIMIZE"
    EQUAL = "EQUAL"


class BoundState(StrEnum):
    """Where a variable (or tableau row) currently sits relative to its bounds."""

    AT_LOWER = "AT_LOWER"
    AT_UPPER = "AT_UPPER"
    BASIC = "BASIC"


class SimplexStatus(StrEnum):
    """Outcome of a priority stage."""

    OPTIMAL = "OPTIMAL"
    GOAL_VIOLATION = "GOAL_VIOLATION"


class PivotType(StrEnum):
    """Outcome of the bounded ratio test."""

    DEGENERATE_PIVOT = "DEGENERATE_PIVOT"
    PRE_EMPTIVE_BOUND_HIT = "PRE_EMPTIVE_BOUND_HIT"
    ROW_PIVOT = "ROW_PIVOT"


class GoalAdjustment(StrEnum):
    """Direction a goal row's value must move to become satisfied."""

    NONE = "NONE"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


# --- Base model ---


class LexigoalBase(BaseModel):
    """Base model with common configuration for all lexigoal Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "arbitrary_types_allowed": True,
    }
