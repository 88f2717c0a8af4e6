"""Session facade owning the current dataset and its derived analysis artifacts.

The UI layer talks to :class:`AnalysisSession` only. Every operation returns an
:class:`Outcome` instead of raising engine errors, and a failed operation leaves the
session exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tabcast.analysis.cleaning import CleaningResult, clean_column
from tabcast.analysis.correlation_analyzer import CorrelationAnalyzer, CorrelationResult
from tabcast.analysis.forecasting import ForecastResult, forecast_series
from tabcast.analysis.model_selection import ModelSelectionResult, run_automl
from tabcast.analysis.stats_engine import StatsResult, compute_column_stats
from tabcast.config import DEFAULT_CONFIG, AnalysisConfig
from tabcast.data.dataset import Dataset
from tabcast.data.detection import ColumnRoles, detect_column_roles
from tabcast.data.transforms import update_cell
from tabcast.errors import ConfigurationError, ErrorReport, TabcastError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of a session operation.

    Attributes:
        ok: True when the operation succeeded.
        value: The operation's result on success.
        error: Structured error on failure.
        message: Short human-readable status line (success or failure).
    """

    ok: bool
    value: Any = None
    error: ErrorReport | None = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> Outcome:
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, error: TabcastError) -> Outcome:
        report = error.report()
        return cls(ok=False, error=report, message=report.message)


class AnalysisSession:
    """Current dataset plus the last stats, correlations, forecast and AutoML results.

    Stats and correlations are recomputed every time the dataset changes. Forecast and AutoML
    results describe the dataset they were computed from, so they are discarded when it changes.

    Example:
        >>> session = AnalysisSession(Dataset.from_records(rows))
        >>> out = session.forecast("date", "sales", model="moving-average", horizon=7)
        >>> out.ok, session.forecast_result.metrics.rmse
    """

    def __init__(self, dataset: Dataset | None = None, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.dataset = dataset if dataset is not None else Dataset.from_records([])
        self.stats: StatsResult | None = None
        self.correlations: CorrelationResult | None = None
        self.roles: ColumnRoles | None = None
        self.forecast_result: ForecastResult | None = None
        self.automl_result: ModelSelectionResult | None = None
        self.recompute()
        self.roles = detect_column_roles(self.dataset)

    def recompute(self) -> StatsResult:
        """Refresh stats and correlations for the current dataset."""
        self.stats = compute_column_stats(self.dataset)
        self.correlations = CorrelationAnalyzer(self.dataset, self.stats).fit().result()
        return self.stats

    def _run(self, operation: Callable[[], Outcome]) -> Outcome:
        try:
            return operation()
        except TabcastError as exc:
            logger.warning("%s failed: %s", exc.kind, exc.message)
            return Outcome.failure(exc)

    def _replace_dataset(self, dataset: Dataset) -> None:
        # Compute everything before assigning so a failure leaves the session untouched.
        stats = compute_column_stats(dataset)
        correlations = CorrelationAnalyzer(dataset, stats).fit().result()
        self.dataset, self.stats, self.correlations = dataset, stats, correlations
        self.forecast_result = None
        self.automl_result = None

    # ------------------------------------------------------------------ operations
    def load(self, dataset: Dataset) -> Outcome:
        """Replace the current dataset with a freshly imported one and suggest column roles."""

        def apply() -> Outcome:
            roles = detect_column_roles(dataset)
            self._replace_dataset(dataset)
            self.roles = roles
            return Outcome.success(
                roles,
                message=f"Loaded {dataset.n_rows} rows and {len(dataset.columns)} columns.",
            )

        return self._run(apply)

    def configure(self, **options: Any) -> Outcome:
        """Update configuration options (snake_case or camelCase names)."""

        def apply() -> Outcome:
            merged = {
                "cleaning_method": self.config.cleaning_method,
                "cleaning_target": self.config.cleaning_target,
                "model": self.config.model,
                "forecast_periods": self.config.forecast_periods,
            }
            config = AnalysisConfig.from_mapping({**merged, **options})
            self.config = config
            return Outcome.success(config, message="Configuration updated.")

        return self._run(apply)

    def clean(self, column: str | None, *, target: str | None = None, method: str | None = None) -> Outcome:
        """Clean one column; options default to the session configuration."""

        def apply() -> Outcome:
            res: CleaningResult = clean_column(
                self.dataset,
                column,
                target=target or self.config.cleaning_target,
                method=method or self.config.cleaning_method,
                stats=self.stats,
            )
            self._replace_dataset(res.dataset)
            return Outcome.success(res, message=res.message)

        return self._run(apply)

    def edit_cell(self, row: int, column: str, value: Any) -> Outcome:
        """Replace one cell of the current dataset."""

        def apply() -> Outcome:
            if not 0 <= row < self.dataset.n_rows:
                raise ConfigurationError(f"Row {row} out of range for dataset with {self.dataset.n_rows} rows.")
            self._replace_dataset(update_cell(self.dataset, row, column, value))
            return Outcome.success(self.dataset, message=f"Updated row {row}, column '{column}'.")

        return self._run(apply)

    def forecast(
        self,
        time_col: str | None,
        target_col: str | None,
        *,
        model: str | None = None,
        horizon: int | None = None,
    ) -> Outcome:
        """Forecast ``target_col`` with the selected (or configured) model."""

        def apply() -> Outcome:
            res = forecast_series(
                self.dataset,
                time_col,
                target_col,
                model=model or self.config.model,
                horizon=self.config.forecast_periods if horizon is None else horizon,
                stats=self.stats,
            )
            self.forecast_result = res
            return Outcome.success(res, message=f"Forecast generated with {res.model_name}.")

        return self._run(apply)

    def run_automl(self, time_col: str | None, target_col: str | None, *, horizon: int | None = None) -> Outcome:
        """Compare every candidate model and keep the best forecast."""

        def apply() -> Outcome:
            res = run_automl(
                self.dataset,
                time_col,
                target_col,
                horizon=self.config.forecast_periods if horizon is None else horizon,
                stats=self.stats,
            )
            self.automl_result = res
            self.forecast_result = res.best
            return Outcome.success(res, message=f"Best model: {res.best.model_name}.")

        return self._run(apply)


__all__ = ["AnalysisSession", "Outcome"]
