"""Configuration record for cleaning and forecasting runs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from tabcast.errors import ConfigurationError


class CleaningMethod(StrEnum):
    """How matching cells are treated."""

    MEAN = "mean"
    MEDIAN = "median"
    ZERO = "zero"
    REMOVE = "remove"


class CleaningTarget(StrEnum):
    """Which cells a cleaning run applies to."""

    MISSING = "missing"
    OUTLIERS = "outliers"
    BOTH = "both"

    @property
    def includes_missing(self) -> bool:
        return self in {CleaningTarget.MISSING, CleaningTarget.BOTH}

    @property
    def includes_outliers(self) -> bool:
        return self in {CleaningTarget.OUTLIERS, CleaningTarget.BOTH}


class ModelId(StrEnum):
    """Forecasting models a user can pick directly.

    The AutoML-only candidates (``ma-3``, ``ma-5``, ``exp``) are not listed here.
    """

    LINEAR = "linear"
    MOVING_AVERAGE = "moving-average"


# Camel-case keys used by the UI layer's configuration record.
_KEY_ALIASES = {
    "cleaningMethod": "cleaning_method",
    "cleaningTarget": "cleaning_target",
    "forecastPeriods": "forecast_periods",
}


def coerce_option(enum_cls: type[StrEnum], value: Any, option: str) -> StrEnum:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"Invalid {option}={value!r}. Use one of: {allowed}.") from None


@dataclass(frozen=True)
class AnalysisConfig:
    """Options for cleaning and forecasting.

    Attributes:
        cleaning_method: Replacement policy (mean, median, zero) or row removal.
        cleaning_target: Missing cells, outliers, or both.
        model: User-selectable forecasting model.
        forecast_periods: Forecast horizon in steps (>= 1).
    """

    cleaning_method: CleaningMethod = CleaningMethod.MEAN
    cleaning_target: CleaningTarget = CleaningTarget.BOTH
    model: ModelId = ModelId.LINEAR
    forecast_periods: int = 10

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "cleaning_method",
            coerce_option(CleaningMethod, self.cleaning_method, "cleaning_method"),
        )
        object.__setattr__(
            self,
            "cleaning_target",
            coerce_option(CleaningTarget, self.cleaning_target, "cleaning_target"),
        )
        object.__setattr__(self, "model", coerce_option(ModelId, self.model, "model"))
        if isinstance(self.forecast_periods, bool) or not isinstance(self.forecast_periods, int):
            raise ConfigurationError(f"forecast_periods must be an integer, got {self.forecast_periods!r}.")
        if self.forecast_periods < 1:
            raise ConfigurationError(f"forecast_periods must be >= 1, got {self.forecast_periods}.")

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> AnalysisConfig:
        """Build a config from a mapping with snake_case or camelCase keys.

        Unknown keys are rejected so that typos do not silently fall back to defaults.
        """
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ConfigurationError(f"Unknown configuration option '{key}'.")
            kwargs[name] = value
        return cls(**kwargs)

    def with_options(self, **changes: Any) -> AnalysisConfig:
        """Return a copy with some options replaced (validated again)."""
        return replace(self, **changes)


DEFAULT_CONFIG = AnalysisConfig()


__all__ = [
    "DEFAULT_CONFIG",
    "AnalysisConfig",
    "CleaningMethod",
    "CleaningTarget",
    "ModelId",
    "coerce_option",
]
