"""Lightweight univariate forecasting models.

Every model follows the same three-step protocol over a time-ordered value array split at
``train_size``:

1. ``fit(values, train_size)`` learns from ``values[:train_size]``
2. ``predict_test()`` predicts ``values[train_size:]`` (one value per test point)
3. ``forecast(horizon)`` projects ``horizon`` steps past the end of the full series

Models only see the value array; timestamps are handled by the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Self

import numpy as np


class ForecastModel(ABC):
    """Base class for the forecasting models.

    Attributes:
        model_id: Stable identifier (``linear``, ``moving-average``, ``ma-5``, ...).
        name: Display name.
    """

    def __init__(self, model_id: str, name: str) -> None:
        self.model_id = model_id
        self.name = name
        self._values: np.ndarray | None = None
        self._train_size = 0

    def fit(self, values: np.ndarray, train_size: int) -> Self:
        """Fit on the first ``train_size`` values of the time-ordered series ``values``."""
        values = np.asarray(values, dtype=float)
        if not 1 <= train_size <= len(values):
            raise ValueError(f"train_size must be in [1, {len(values)}], got {train_size}")
        self._values = values
        self._train_size = train_size
        self._fit_train(values[:train_size])
        return self

    def _fit_train(self, train: np.ndarray) -> None:  # noqa: B027
        """Hook for models with trainable parameters."""

    @property
    def values(self) -> np.ndarray:
        if self._values is None:
            raise ValueError("Must call fit() before predicting")
        return self._values

    @property
    def n_test(self) -> int:
        return len(self.values) - self._train_size

    @abstractmethod
    def predict_test(self) -> np.ndarray:
        """Return one prediction per test point."""

    @abstractmethod
    def forecast(self, horizon: int) -> np.ndarray:
        """Return ``horizon`` values following the last observation."""

    @property
    def params(self) -> dict[str, float]:
        """Fitted or configured parameters, for reporting."""
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model_id={self.model_id!r})"


class LinearTrendModel(ForecastModel):
    r"""Ordinary least squares of value on the integer position ``0..n_train-1``.

    Closed form from sums of products:

    :math:`b = \frac{n\sum xy - \sum x\sum y}{n\sum x^2 - (\sum x)^2}`, :math:`a = \frac{\sum y - b\sum x}{n}`

    Test point ``i`` is predicted at position ``n_train + i``; forecast step ``k`` (1-based) at
    position ``n + k - 1``, i.e. the line continues right after the last observation.
    """

    def __init__(self, model_id: str = "linear", name: str = "Linear Regression") -> None:
        super().__init__(model_id, name)
        self.slope = 0.0
        self.intercept = 0.0

    def _fit_train(self, train: np.ndarray) -> None:
        n = len(train)
        x = np.arange(n, dtype=float)
        sum_x, sum_y = x.sum(), train.sum()
        denominator = n * (x * x).sum() - sum_x**2
        # A single training point has no slope; the line is flat through it.
        self.slope = float((n * (x * train).sum() - sum_x * sum_y) / denominator) if denominator else 0.0
        self.intercept = float((sum_y - self.slope * sum_x) / n)

    def _line(self, positions: np.ndarray) -> np.ndarray:
        return self.slope * positions + self.intercept

    def predict_test(self) -> np.ndarray:
        return self._line(np.arange(self._train_size, len(self.values), dtype=float))

    def forecast(self, horizon: int) -> np.ndarray:
        n = len(self.values)
        return self._line(np.arange(n, n + horizon, dtype=float))

    @property
    def params(self) -> dict[str, float]:
        return {"slope": self.slope, "intercept": self.intercept}


class MovingAverageModel(ForecastModel):
    """Mean of the ``window`` observations immediately preceding each point.

    Test windows slide over the *actual* series, so the tail of the training set feeds the
    first test predictions. Near the start of the series the window shrinks to what is
    available. The forecast does not slide: every horizon step gets the mean of the last
    ``window`` historical values.
    """

    def __init__(self, window: int = 3, model_id: str | None = None, name: str | None = None) -> None:
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        super().__init__(model_id or f"ma-{window}", name or f"Moving Average ({window})")
        self.window = window

    def predict_test(self) -> np.ndarray:
        values = self.values
        return np.array(
            [values[max(0, t - self.window) : t].mean() for t in range(self._train_size, len(values))],
            dtype=float,
        )

    def forecast(self, horizon: int) -> np.ndarray:
        return np.full(horizon, self.values[-self.window :].mean(), dtype=float)

    @property
    def params(self) -> dict[str, float]:
        return {"window": float(self.window)}


class ExponentialSmoothingModel(ForecastModel):
    r"""Simple exponential smoothing :math:`s_t = \alpha y_t + (1-\alpha) s_{t-1}`.

    The level is seeded with the last training value and updated with each test point's own
    actual value before that point's prediction is emitted, so test predictions include the
    observation they are scored against.

    Known quirk: the horizon recurrence :math:`s \leftarrow \alpha s + (1-\alpha) s` has no new
    observation to absorb and leaves :math:`s` unchanged, so every forecast step equals the last
    historical value. Callers should not treat this flat horizon as a smoothing forecast.
    """

    def __init__(self, alpha: float = 0.3, model_id: str = "exp", name: str = "Exponential Smoothing") -> None:
        if not 0 < alpha <= 1:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        super().__init__(model_id, name)
        self.alpha = alpha

    def predict_test(self) -> np.ndarray:
        values = self.values
        level = values[self._train_size - 1]
        predictions = []
        for actual in values[self._train_size :]:
            level = self.alpha * actual + (1 - self.alpha) * level
            predictions.append(level)
        return np.asarray(predictions, dtype=float)

    def forecast(self, horizon: int) -> np.ndarray:
        level = self.values[-1]
        out = []
        for _ in range(horizon):
            level = self.alpha * level + (1 - self.alpha) * level
            out.append(level)
        return np.asarray(out, dtype=float)

    @property
    def params(self) -> dict[str, float]:
        return {"alpha": self.alpha}


__all__ = ["ExponentialSmoothingModel", "ForecastModel", "LinearTrendModel", "MovingAverageModel"]
