"""Automatic forecasting model selection by hold-out RMSE."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Self

import numpy as np
import pandas as pd

from tabcast.data.dataset import Dataset

from .base_analyser import BaseAnalyser
from .forecast_models import (
    ExponentialSmoothingModel,
    ForecastModel,
    LinearTrendModel,
    MovingAverageModel,
)
from .forecasting import DEFAULT_HORIZON, ForecastResult, prepare_series, run_forecast
from .metrics import ForecastMetrics
from .stats_engine import StatsResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateSpec:
    """A named model factory taking part in the selection."""

    model_id: str
    name: str
    factory: Callable[[], ForecastModel]

    def build(self) -> ForecastModel:
        return self.factory()


CANDIDATES: tuple[CandidateSpec, ...] = (
    CandidateSpec("linear", "Linear Regression", LinearTrendModel),
    CandidateSpec("ma-3", "Moving Average (3)", lambda: MovingAverageModel(window=3)),
    CandidateSpec("ma-5", "Moving Average (5)", lambda: MovingAverageModel(window=5)),
    CandidateSpec("exp", "Exponential Smoothing", lambda: ExponentialSmoothingModel(alpha=0.3)),
)


@dataclass(frozen=True)
class ModelCandidate:
    """One evaluated candidate.

    Attributes:
        model_id: Candidate identifier.
        name: Display name.
        predictions: Test-split predictions, aligned with the test actuals.
        metrics: Test-split metrics.
    """

    model_id: str
    name: str
    predictions: np.ndarray
    metrics: ForecastMetrics


@dataclass(frozen=True)
class ModelSelectionResult:
    """Candidates in evaluation order, their RMSE ranking and the best model's full forecast.

    Attributes:
        candidates: Every candidate, in the fixed evaluation order.
        ranking: The same candidates sorted by RMSE ascending (ties keep evaluation order,
            undefined RMSE last).
        best: Full forecast regenerated with the best-ranked model.
    """

    candidates: tuple[ModelCandidate, ...]
    ranking: tuple[ModelCandidate, ...]
    best: ForecastResult

    @property
    def best_candidate(self) -> ModelCandidate:
        return self.ranking[0]

    def summary_table(self) -> pd.DataFrame:
        """Comparison table in ranking order, indexed by model id."""
        rows = [
            {
                "model": c.model_id,
                "name": c.name,
                "rank": rank,
                "rmse": c.metrics.rmse,
                "mae": c.metrics.mae,
                "r2": c.metrics.r2,
                "n_obs": c.metrics.n_obs,
            }
            for rank, c in enumerate(self.ranking, start=1)
        ]
        return pd.DataFrame(rows).set_index("model")


def _rmse_key(candidate: ModelCandidate) -> tuple[bool, float]:
    rmse = candidate.metrics.rmse
    undefined = math.isnan(rmse)
    return undefined, 0.0 if undefined else rmse


def rank_candidates(candidates: list[ModelCandidate] | tuple[ModelCandidate, ...]) -> list[ModelCandidate]:
    """Sort candidates by RMSE ascending; stable, with undefined RMSE last."""
    return sorted(candidates, key=_rmse_key)


class AutoMLSelector(BaseAnalyser):
    """Evaluate every candidate model on the same series and keep the lowest-RMSE one.

    The candidates run sequentially in the order of :data:`CANDIDATES`. The series is
    prepared once and shared, so all candidates see identical train/test splits.

    Example:
        >>> sel = AutoMLSelector(ds, "date", "sales").fit().result()
        >>> sel.best.model_name
        'Linear Regression'
        >>> sel.summary_table()
    """

    def __init__(
        self,
        dataset: Dataset,
        time_col: str | None,
        target_col: str | None,
        *,
        horizon: int = DEFAULT_HORIZON,
        stats: StatsResult | None = None,
        candidates: tuple[CandidateSpec, ...] = CANDIDATES,
    ) -> None:
        self._dataset = dataset
        self._time_col = time_col
        self._target_col = target_col
        self._horizon = horizon
        self._stats = stats
        self._specs = candidates
        self._result: ModelSelectionResult | None = None

    def fit(self) -> Self:
        """Run all candidates, rank them and regenerate the winner's forecast.

        Raises:
            ConfigurationError: For invalid column selections or horizon.
            InsufficientDataError: For fewer than 10 usable points.
        """
        series = prepare_series(self._dataset, self._time_col, self._target_col, stats=self._stats)

        evaluated: list[ModelCandidate] = []
        for spec in self._specs:
            run = run_forecast(series, spec.build(), self._horizon)
            candidate = ModelCandidate(
                model_id=spec.model_id,
                name=spec.name,
                predictions=run.test_predictions["predicted"].to_numpy(),
                metrics=run.metrics,
            )
            logger.debug("Candidate %s: %r", spec.model_id, candidate.metrics)
            evaluated.append(candidate)

        ranking = rank_candidates(evaluated)
        winner = ranking[0]
        best_spec = next(s for s in self._specs if s.model_id == winner.model_id)
        best = run_forecast(series, best_spec.build(), self._horizon)

        logger.info("AutoML picked %s (rmse=%.4f)", winner.name, winner.metrics.rmse)
        self._result = ModelSelectionResult(
            candidates=tuple(evaluated),
            ranking=tuple(ranking),
            best=best,
        )
        return self

    def result(self) -> ModelSelectionResult:
        """Return the selection outcome.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result


def run_automl(
    dataset: Dataset,
    time_col: str | None,
    target_col: str | None,
    *,
    horizon: int = DEFAULT_HORIZON,
    stats: StatsResult | None = None,
) -> ModelSelectionResult:
    """Functional shortcut for ``AutoMLSelector(...).fit().result()``."""
    return AutoMLSelector(dataset, time_col, target_col, horizon=horizon, stats=stats).fit().result()


__all__ = [
    "CANDIDATES",
    "AutoMLSelector",
    "CandidateSpec",
    "ModelCandidate",
    "ModelSelectionResult",
    "rank_candidates",
    "run_automl",
]
