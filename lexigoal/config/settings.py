"""lexigoal solver settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Solver-wide numeric tolerances and termination caps.

    Every value can be overridden through a ``LEXIGOAL_``-prefixed
    environment variable or the ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEXIGOAL_",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Tolerances ---
    FEASIBILITY_TOLERANCE: float = Field(
        default=1e-6,
        gt=0.0,
        description="Max |row·x - rhs| accepted for a hard row.",
    )
    IMPROVEMENT_TOLERANCE: float = Field(
        default=1e-9,
        gt=0.0,
        description="Min score gain for a candidate to replace the incumbent.",
    )
    PIVOT_EPSILON: float = Field(
        default=1e-9,
        gt=0.0,
        description="Pivot magnitude below which elimination treats a column as zero.",
    )
    USAGE_PENALTY: float = Field(
        default=1e-6,
        ge=0.0,
        description="Weight of total variable usage in the phase-1 score.",
    )

    # --- Rational conversion ---
    RATIONAL_SCALE: int = Field(
        default=1_000_000,
        gt=0,
        description="Decimal scale used when float results are converted to Rational.",
    )

    # --- Search caps ---
    VERTEX_ENUMERATION_LIMIT: int = Field(
        default=16,
        ge=0,
        le=20,
        description="Max variable count for full box-vertex enumeration.",
    )
    FIXING_SAMPLE_CAP: int = Field(
        default=2048,
        gt=0,
        description="Max {free, lower, upper} fixings tried per specialization.",
    )
    FIXED_FREE_CAP: int = Field(
        default=200_000,
        gt=0,
        description="Max candidate points produced by fixed-free enumeration.",
    )
    LEAST_SQUARES_REGULARIZATION: float = Field(
        default=1e-9,
        ge=0.0,
        description="Ridge term added to the normal equations of the projection.",
    )
    QP_REGULARIZATION: float = Field(
        default=1e-6,
        ge=0.0,
        description="Usage (sum of squares) weight in the active-set QP.",
    )
    QP_MAX_ITERATIONS: int = Field(
        default=200,
        gt=0,
        description="Active-set iteration cap.",
    )
    MAX_BRANCH_DEPTH: int = Field(
        default=32,
        ge=0,
        description="Branch-and-bound depth beyond which nodes are pruned.",
    )
    MAX_PIVOT_ITERATIONS: int = Field(
        default=1000,
        gt=0,
        description="Iteration cap for the bounded pivot engine.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/prod).",
    )


def get_settings() -> Settings:
    """Factory function returning freshly loaded settings."""
    return Settings()
