"""Schema and validator for the stage probability YAML file

Every stage must be present, each envelope must satisfy
``min <= base <= max`` inside [0, 1], and the envelopes must never shrink
along the pipeline progression so that a later stage can never score below
an earlier one.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from core.exceptions import ConfigurationError
from core.logging import get_logger

from .constants import (
    DEFAULT_STAGE_PROBABILITIES_PATH,
    ON_PACE_MULTIPLIER,
    SLOW_PACE_MULTIPLIER,
    STAGE_PROBABILITIES_ENV_VAR,
)
from .types import DealStage, StageProbability

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class StageConfig(BaseModel):
    """Probability envelope for one stage."""

    base_probability: float = Field(..., ge=0, le=1)
    min_probability: float = Field(..., ge=0, le=1)
    max_probability: float = Field(..., ge=0, le=1)
    avg_days_in_stage: int = Field(..., ge=1)
    conversion_rate: float = Field(..., ge=0, le=1)

    @model_validator(mode="after")
    def _validate_envelope(self) -> StageConfig:
        if not self.min_probability <= self.base_probability <= self.max_probability:
            raise ValueError(
                f"Expected min <= base <= max, got {self.min_probability} / "
                f"{self.base_probability} / {self.max_probability}"
            )
        return self


class StageTableSchema(BaseModel):
    """Root schema for the stage probability document."""

    version: str = Field(..., pattern=r"^\d+\.\d+$")
    stages: dict[str, StageConfig]

    @field_validator("stages")
    @classmethod
    def validate_stage_names(cls, v):
        names = set(v)
        expected = {stage.value for stage in DealStage}
        missing = expected - names
        if missing:
            raise ValueError(f"Missing stage configurations for: {sorted(missing)}")
        unknown = names - expected
        if unknown:
            raise ValueError(f"Unknown stages: {sorted(unknown)}")
        return v

    @model_validator(mode="after")
    def _validate_progression(self) -> StageTableSchema:
        """Later stages must dominate earlier ones.

        The base ratio must also absorb the worst pace swing (an on-pace
        earlier stage against a slow later stage).
        """
        progression = DealStage.progression()
        for earlier, later in zip(progression, progression[1:]):
            a = self.stages[earlier.value]
            b = self.stages[later.value]
            for attr in ("base_probability", "min_probability", "max_probability"):
                if getattr(b, attr) < getattr(a, attr):
                    raise ValueError(f"{attr} of {later.value} must not be below {earlier.value}")
            if b.base_probability * SLOW_PACE_MULTIPLIER < a.base_probability * ON_PACE_MULTIPLIER:
                if b.min_probability < a.max_probability:
                    raise ValueError(
                        f"base_probability of {later.value} is too close to {earlier.value} "
                        f"to stay ahead under pace adjustments"
                    )
        return self

    def to_table(self) -> dict[DealStage, StageProbability]:
        return {
            DealStage(name): StageProbability(stage=DealStage(name), **config.model_dump())
            for name, config in self.stages.items()
        }


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------


def resolve_stage_table_path() -> Path:
    """Return the effective stage table path.

    Checks ``STAGE_PROBABILITIES_PATH`` env var first; falls back to the
    table shipped with the package.
    """
    env_path = os.getenv(STAGE_PROBABILITIES_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_STAGE_PROBABILITIES_PATH


def validate_stage_table(path: os.PathLike | str) -> StageTableSchema:
    """Load a YAML file and return a validated ``StageTableSchema``.

    Raises:
        ConfigurationError: If the file is missing or fails validation.
    """
    path_obj = Path(path)
    if not path_obj.exists():
        raise ConfigurationError(f"Stage probability file not found: {path_obj}", setting=STAGE_PROBABILITIES_ENV_VAR)

    with path_obj.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    try:
        schema = StageTableSchema.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Validation failed for stage probability file '{path_obj}': {exc}",
            setting=STAGE_PROBABILITIES_ENV_VAR,
        ) from exc

    _logger.debug(f"Loaded stage probability table {schema.version} from {path_obj}")
    return schema
