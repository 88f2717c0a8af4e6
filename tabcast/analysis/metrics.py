"""Hold-out accuracy metrics for forecasts."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error


@dataclass(frozen=True)
class ForecastMetrics:
    r"""Accuracy of test-split predictions.

    - :math:`\text{MAE} = \frac{1}{n}\sum_i |y_i - \hat{y}_i|`
    - :math:`\text{RMSE} = \sqrt{\frac{1}{n}\sum_i (y_i - \hat{y}_i)^2}`
    - :math:`R^2 = 1 - \frac{SS_{res}}{SS_{tot}}` with :math:`SS_{tot}` around the mean of the
      actual test values.

    Undefined values are NaN: all three for an empty test split, and :math:`R^2` whenever
    :math:`SS_{tot} = 0` (constant actuals).
    """

    mae: float
    """Mean absolute error (in target units); lower is better."""

    rmse: float
    """Root mean squared error (in target units); lower is better. Used for model ranking."""

    r2: float
    """Coefficient of determination; NaN when undefined."""

    n_obs: int
    """Number of test points behind the metrics."""

    @property
    def r2_defined(self) -> bool:
        """False when R² could not be computed."""
        return not np.isnan(self.r2)

    def as_dict(self) -> dict[str, float | None]:
        """Return metrics with undefined values as ``None`` (display-friendly)."""
        return {
            "mae": None if np.isnan(self.mae) else self.mae,
            "rmse": None if np.isnan(self.rmse) else self.rmse,
            "r2": self.r2 if self.r2_defined else None,
        }

    def __repr__(self) -> str:
        def fmt(value: float, decimals: int = 4) -> str:
            return "undefined" if np.isnan(value) else f"{value:.{decimals}f}"

        return f"ForecastMetrics(mae={fmt(self.mae)}, rmse={fmt(self.rmse)}, r2={fmt(self.r2)}, n={self.n_obs})"


def r_squared(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Coefficient of determination, NaN when the actual values have zero total variance."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        return float("nan")
    ss_tot = float(np.sum((y_true - y_true.mean()) ** 2))
    if ss_tot == 0:
        return float("nan")
    ss_res = float(np.sum((y_true - y_pred) ** 2))
    return 1.0 - ss_res / ss_tot


def compute_forecast_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> ForecastMetrics:
    """Compute MAE, RMSE and R² for aligned actual/predicted arrays."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.size == 0:
        nan = float("nan")
        return ForecastMetrics(mae=nan, rmse=nan, r2=nan, n_obs=0)

    # RMSE is taken as the root of sklearn's MSE; the `squared` kwarg is not available everywhere.
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    mae = float(mean_absolute_error(y_true, y_pred))
    return ForecastMetrics(mae=mae, rmse=rmse, r2=r_squared(y_true, y_pred), n_obs=int(y_true.size))


__all__ = ["ForecastMetrics", "compute_forecast_metrics", "r_squared"]
