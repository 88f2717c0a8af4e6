"""Analysis modules: column statistics, correlations, cleaning and forecasting."""

from .cleaning import CleaningResult, DataCleaner, clean_column
from .correlation_analyzer import CorrelationAnalyzer, CorrelationResult, pearson_from_sums
from .forecast_models import (
    ExponentialSmoothingModel,
    ForecastModel,
    LinearTrendModel,
    MovingAverageModel,
)
from .forecasting import (
    ForecastingEngine,
    ForecastResult,
    TimeSeries,
    forecast_series,
    parse_instant,
    prepare_series,
    run_forecast,
)
from .metrics import ForecastMetrics, compute_forecast_metrics, r_squared
from .model_selection import (
    CANDIDATES,
    AutoMLSelector,
    ModelCandidate,
    ModelSelectionResult,
    run_automl,
)
from .outlier_detector import IQR_MULTIPLIER, IQRFences, IQROutlierDetector, OutlierDetectionResult
from .stats_engine import ColumnKind, ColumnStats, StatsAnalyzer, StatsResult, compute_column_stats


__all__ = [
    "CANDIDATES",
    "IQR_MULTIPLIER",
    "AutoMLSelector",
    "CleaningResult",
    "ColumnKind",
    "ColumnStats",
    "CorrelationAnalyzer",
    "CorrelationResult",
    "DataCleaner",
    "ExponentialSmoothingModel",
    "ForecastMetrics",
    "ForecastModel",
    "ForecastResult",
    "ForecastingEngine",
    "IQRFences",
    "IQROutlierDetector",
    "LinearTrendModel",
    "ModelCandidate",
    "ModelSelectionResult",
    "MovingAverageModel",
    "OutlierDetectionResult",
    "StatsAnalyzer",
    "StatsResult",
    "TimeSeries",
    "clean_column",
    "compute_column_stats",
    "compute_forecast_metrics",
    "forecast_series",
    "parse_instant",
    "pearson_from_sums",
    "prepare_series",
    "r_squared",
    "run_automl",
    "run_forecast",
]
