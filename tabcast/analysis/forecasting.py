"""Time-series preparation, train/test evaluation and horizon projection."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Self

import numpy as np
import pandas as pd

from tabcast.config import ModelId, coerce_option
from tabcast.data.dataset import Dataset
from tabcast.data.utils import is_number, is_present
from tabcast.errors import ConfigurationError, InsufficientDataError

from .base_analyser import BaseAnalyser
from .forecast_models import ForecastModel, LinearTrendModel, MovingAverageModel
from .metrics import ForecastMetrics, compute_forecast_metrics
from .stats_engine import StatsResult, compute_column_stats


logger = logging.getLogger(__name__)

MIN_POINTS = 10
TRAIN_RATIO = 0.8
DEFAULT_HORIZON = 10

POINT_COLUMNS = ["timestamp", "actual", "predicted", "forecast"]

# Models a user can select directly. The extra AutoML candidates live in model_selection.
USER_MODELS: dict[ModelId, Callable[[], ForecastModel]] = {
    ModelId.LINEAR: lambda: LinearTrendModel(model_id=ModelId.LINEAR.value),
    ModelId.MOVING_AVERAGE: lambda: MovingAverageModel(
        window=3,
        model_id=ModelId.MOVING_AVERAGE.value,
        name="Moving Average (3)",
    ),
}


def parse_instant(value: Any) -> pd.Timestamp | None:
    """Parse a time cell into a naive UTC timestamp, or ``None`` if it cannot be parsed.

    Numbers are read as epoch milliseconds; text and datetime objects go through
    :func:`pandas.to_datetime`. Time-zone aware values are converted to UTC.
    """
    if not is_present(value) or isinstance(value, (bool, np.bool_)):
        return None
    try:
        ts = pd.to_datetime(value, unit="ms") if is_number(value) else pd.to_datetime(value)
    except (ValueError, TypeError, OverflowError, pd.errors.OutOfBoundsDatetime):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


@dataclass(frozen=True)
class TimeSeries:
    """Time-ordered numeric observations extracted from a dataset.

    Attributes:
        times: Ascending instants.
        values: Observation per instant.
        time_col: Source time column.
        target_col: Source target column.
    """

    times: pd.DatetimeIndex
    values: np.ndarray
    time_col: str = ""
    target_col: str = ""

    def __len__(self) -> int:
        return len(self.values)

    @property
    def step(self) -> pd.Timedelta:
        """Gap between the last two observations, used as the constant forecast step."""
        if len(self.times) < 2:  # noqa: PLR2004
            raise InsufficientDataError(
                "At least two observations are needed to infer a time step.",
                n_available=len(self.times),
                n_required=2,
            )
        return self.times[-1] - self.times[-2]

    def train_size(self, ratio: float = TRAIN_RATIO) -> int:
        """Number of leading points used for training (``floor(ratio * n)``)."""
        return math.floor(len(self) * ratio)


def prepare_series(
    dataset: Dataset,
    time_col: str | None,
    target_col: str | None,
    *,
    stats: StatsResult | None = None,
    min_points: int = MIN_POINTS,
) -> TimeSeries:
    """Extract a sorted ``(instant, value)`` series from two dataset columns.

    Rows where either cell is missing are skipped, as are rows whose time cell cannot be parsed
    (with a warning). Equal instants keep their row order.

    Raises:
        ConfigurationError: If a column is not selected, does not exist, or the target is not
            numeric.
        InsufficientDataError: If fewer than ``min_points`` usable rows remain.
    """
    if not time_col or not target_col:
        raise ConfigurationError("Select a target column and a time column.")
    dataset.require_column(time_col)
    dataset.require_column(target_col)

    if stats is None or target_col not in stats:
        stats = compute_column_stats(dataset, [target_col])
    if not stats[target_col].is_numeric:
        raise ConfigurationError(f"Target column '{target_col}' is not numeric.")

    frame = dataset.df
    instants: list[pd.Timestamp] = []
    values: list[float] = []
    n_unparsed = 0
    for t, v in zip(frame[time_col].tolist(), frame[target_col].tolist(), strict=True):
        if not (is_present(t) and is_present(v)):
            continue
        ts = parse_instant(t)
        if ts is None:
            n_unparsed += 1
            continue
        instants.append(ts)
        values.append(float(v))

    if n_unparsed:
        logger.warning("Dropped %d rows with unparseable time values in '%s'", n_unparsed, time_col)

    if len(values) < min_points:
        raise InsufficientDataError(
            f"Not enough data for time-series analysis: {len(values)} usable points, minimum {min_points}.",
            n_available=len(values),
            n_required=min_points,
        )

    order = sorted(range(len(instants)), key=instants.__getitem__)
    return TimeSeries(
        times=pd.DatetimeIndex([instants[i] for i in order]),
        values=np.asarray([values[i] for i in order], dtype=float),
        time_col=time_col,
        target_col=target_col,
    )


@dataclass(frozen=True)
class ForecastResult:
    """Fitted model, hold-out evaluation and forward projection for one series.

    Attributes:
        model_id: Identifier of the model.
        model_name: Display name of the model.
        points: Chart-ready rows with columns ``timestamp, actual, predicted, forecast``:
            every historical observation (actual only), then every test point (actual and
            predicted), then every horizon point (forecast only), stably sorted by timestamp.
            Test timestamps therefore appear twice.
        test_predictions: ``timestamp, actual, predicted`` for the test split.
        forecast: ``timestamp, forecast`` for the horizon.
        metrics: MAE / RMSE / R² over the test split.
        params: Model parameters (slope/intercept, window, alpha).
        n_train: Training points.
        n_test: Test points.
        step: Time step used for the horizon.
    """

    model_id: str
    model_name: str
    points: pd.DataFrame
    test_predictions: pd.DataFrame
    forecast: pd.DataFrame
    metrics: ForecastMetrics
    params: dict[str, float] = field(default_factory=dict)
    n_train: int = 0
    n_test: int = 0
    step: pd.Timedelta = pd.Timedelta(0)


def _frame(timestamps: Any, **cols: Any) -> pd.DataFrame:
    n = len(timestamps)
    data = {"timestamp": pd.DatetimeIndex(timestamps)}
    for name in POINT_COLUMNS[1:]:
        data[name] = np.asarray(cols[name], dtype=float) if name in cols else np.full(n, np.nan)
    return pd.DataFrame(data, columns=POINT_COLUMNS)


def run_forecast(
    series: TimeSeries,
    model: ForecastModel,
    horizon: int = DEFAULT_HORIZON,
    *,
    train_ratio: float = TRAIN_RATIO,
) -> ForecastResult:
    """Fit ``model`` on the training split, score it on the test split and project ``horizon`` steps.

    With the default ratio and the 10-point minimum the test split has at least two points.
    If a custom ratio leaves the test split empty, there are no test predictions and all metrics
    are undefined (NaN); the horizon is still projected.

    Raises:
        ConfigurationError: If ``horizon`` is not a positive integer or ``train_ratio`` is not in (0, 1].
        InsufficientDataError: If the training split would be empty.
    """
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon < 1:
        raise ConfigurationError(f"Forecast horizon must be a positive integer, got {horizon!r}.")
    if not 0 < train_ratio <= 1:
        raise ConfigurationError(f"train_ratio must be in (0, 1], got {train_ratio}.")

    n_train = series.train_size(train_ratio)
    if n_train < 1:
        raise InsufficientDataError(
            f"Training split is empty for {len(series)} points at ratio {train_ratio}.",
            n_available=len(series),
            n_required=math.ceil(1 / train_ratio),
        )

    model.fit(series.values, n_train)
    test_times = series.times[n_train:]
    test_actual = series.values[n_train:]
    test_pred = model.predict_test()
    metrics = compute_forecast_metrics(test_actual, test_pred)

    step = series.step
    horizon_times = [series.times[-1] + k * step for k in range(1, horizon + 1)]
    horizon_values = model.forecast(horizon)

    history = _frame(series.times, actual=series.values)
    test = _frame(test_times, actual=test_actual, predicted=test_pred)
    projection = _frame(horizon_times, forecast=horizon_values)
    points = (
        pd.concat([history, test, projection], ignore_index=True)
        .sort_values("timestamp", kind="stable")
        .reset_index(drop=True)
    )

    logger.debug("%s: n_train=%d n_test=%d %r", model.name, n_train, len(test_actual), metrics)
    return ForecastResult(
        model_id=model.model_id,
        model_name=model.name,
        points=points,
        test_predictions=test.drop(columns=["forecast"]),
        forecast=projection.loc[:, ["timestamp", "forecast"]],
        metrics=metrics,
        params=model.params,
        n_train=n_train,
        n_test=len(test_actual),
        step=step,
    )


class ForecastingEngine(BaseAnalyser):
    """Forecast a numeric column against a time column with a user-selected model.

    Only ``linear`` and ``moving-average`` (window 3) are selectable here; the extra
    candidates are reachable through :class:`~tabcast.analysis.model_selection.AutoMLSelector`.

    Horizon timestamps assume a constant step equal to the gap between the last two
    observations. This is a simplification, not general calendar handling.

    Example:
        >>> res = ForecastingEngine(ds, "date", "sales", model="linear", horizon=5).fit().result()
        >>> res.metrics.rmse
        >>> res.forecast.head()
    """

    def __init__(
        self,
        dataset: Dataset,
        time_col: str | None,
        target_col: str | None,
        *,
        model: ModelId | str = ModelId.LINEAR,
        horizon: int = DEFAULT_HORIZON,
        stats: StatsResult | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            dataset: Dataset holding the series.
            time_col: Column with time values.
            target_col: Numeric column to forecast.
            model: ``linear`` or ``moving-average``.
            horizon: Number of forecast steps (>= 1).
            stats: Current stats for ``dataset`` (used for the numeric check).
        """
        self._dataset = dataset
        self._time_col = time_col
        self._target_col = target_col
        self._model = model
        self._horizon = horizon
        self._stats = stats
        self._result: ForecastResult | None = None

    def fit(self) -> Self:
        """Validate the inputs, then fit, evaluate and project.

        Raises:
            ConfigurationError: For missing/invalid column selections or options.
            InsufficientDataError: For fewer than 10 usable points.
        """
        model_id = coerce_option(ModelId, self._model, "model")
        if isinstance(self._horizon, bool) or not isinstance(self._horizon, int) or self._horizon < 1:
            raise ConfigurationError(f"Forecast horizon must be a positive integer, got {self._horizon!r}.")
        series = prepare_series(self._dataset, self._time_col, self._target_col, stats=self._stats)
        self._result = run_forecast(series, USER_MODELS[model_id](), self._horizon)
        logger.info(
            "Forecast with %s on '%s': rmse=%.4f",
            self._result.model_name,
            self._target_col,
            self._result.metrics.rmse,
        )
        return self

    def result(self) -> ForecastResult:
        """Return the forecast.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result


def forecast_series(
    dataset: Dataset,
    time_col: str | None,
    target_col: str | None,
    *,
    model: ModelId | str = ModelId.LINEAR,
    horizon: int = DEFAULT_HORIZON,
    stats: StatsResult | None = None,
) -> ForecastResult:
    """Functional shortcut for ``ForecastingEngine(...).fit().result()``."""
    return ForecastingEngine(
        dataset,
        time_col,
        target_col,
        model=model,
        horizon=horizon,
        stats=stats,
    ).fit().result()


__all__ = [
    "DEFAULT_HORIZON",
    "MIN_POINTS",
    "TRAIN_RATIO",
    "USER_MODELS",
    "ForecastResult",
    "ForecastingEngine",
    "TimeSeries",
    "forecast_series",
    "parse_instant",
    "prepare_series",
    "run_forecast",
]
