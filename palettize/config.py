"""
Palettize Configuration
Immutable settings for the palette pipeline, with environment overrides.
"""
import os
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from palettize.exceptions import ConfigurationError

ENV_PREFIX = "PALETTIZE_"

DEFAULT_MAX_COLORS_COUNT = 10
DEFAULT_COLORS_LIMIT = 10000
DEFAULT_MIN_PERCENTAGE_SUM = 0.981
DEFAULT_MIN_COLOR_PERCENTAGE = 0.01
DEFAULT_COLOR_SIMILARITY_THRESHOLD = 25.0
DEFAULT_COLOR_SIMILARITY_METHOD = "lab"

LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class PaletteSettings(BaseModel):
    """Settings threaded through the limiter, clusterer and noise reducer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_colors_count: int = Field(
        DEFAULT_MAX_COLORS_COUNT, ge=1,
        description="Upper bound on distinct palette entries"
    )
    colors_limit: int = Field(
        DEFAULT_COLORS_LIMIT, ge=1,
        description="Hard cap on colors entering clustering"
    )
    min_percentage_sum: float = Field(
        DEFAULT_MIN_PERCENTAGE_SUM, ge=0.0, le=1.0,
        description="Cumulative weight at which the limiter stops"
    )
    min_color_percentage: float = Field(
        DEFAULT_MIN_COLOR_PERCENTAGE, ge=0.0, le=1.0,
        description="Per-color weight floor for the limiter and noise reducer"
    )
    color_similarity_threshold: float = Field(
        DEFAULT_COLOR_SIMILARITY_THRESHOLD, ge=0.0,
        description="Distance at or below which two colors are similar"
    )
    color_similarity_method: str = Field(
        DEFAULT_COLOR_SIMILARITY_METHOD,
        description="Name of the distance function used for similarity"
    )
    debug: bool = Field(False, description="Enable diagnostic output")
    log_level: str = Field("INFO", description="loguru level for the stderr sink")

    @field_validator("color_similarity_method")
    @classmethod
    def validate_similarity_method(cls, value: str) -> str:
        from palettize.services.colors.color_space import SIMILARITY_METHODS

        value = value.lower()
        if value not in SIMILARITY_METHODS:
            raise ValueError(
                f"unknown similarity method {value!r}, "
                f"expected one of {', '.join(sorted(SIMILARITY_METHODS))}"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value

    def __init__(self, **values: Any):
        try:
            super().__init__(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid palette settings: {e}") from e

    @classmethod
    def build(cls, **values: Any) -> "PaletteSettings":
        """Construct settings; invalid values raise ConfigurationError."""
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None,
                 prefix: str = ENV_PREFIX) -> "PaletteSettings":
        """
        Build settings from environment variables.

        Each field maps to ``<prefix><FIELD_NAME>``, e.g.
        ``PALETTIZE_MAX_COLORS_COUNT=6``. Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{prefix}{name.upper()}")
            if raw is None or raw == "":
                continue
            if name == "debug":
                values[name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[name] = raw
        return cls.build(**values)

    def with_overrides(self, **overrides: Any) -> "PaletteSettings":
        """Return a validated copy with some fields replaced."""
        if not overrides:
            return self
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).build(**values)


@lru_cache(maxsize=1)
def get_settings() -> PaletteSettings:
    """Process-wide defaults, read once from the environment."""
    return PaletteSettings.from_env()
