"""tabcast: column statistics, cleaning and lightweight forecasting for tabular data."""

import logging

from .analysis import (
    AutoMLSelector,
    CorrelationAnalyzer,
    DataCleaner,
    ForecastingEngine,
    IQROutlierDetector,
    StatsAnalyzer,
)
from .config import DEFAULT_CONFIG, AnalysisConfig, CleaningMethod, CleaningTarget, ModelId
from .data import Dataset
from .errors import ConfigurationError, ErrorReport, InsufficientDataError, TabcastError
from .session import AnalysisSession, Outcome


logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "AnalysisConfig",
    "AnalysisSession",
    "AutoMLSelector",
    "CleaningMethod",
    "CleaningTarget",
    "ConfigurationError",
    "CorrelationAnalyzer",
    "DataCleaner",
    "Dataset",
    "ErrorReport",
    "ForecastingEngine",
    "IQROutlierDetector",
    "InsufficientDataError",
    "ModelId",
    "Outcome",
    "StatsAnalyzer",
    "TabcastError",
]
