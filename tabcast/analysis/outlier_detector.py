"""IQR outlier rule shared by the stats view, the cleaner and the detector below."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from tabcast.data.dataset import Dataset
from tabcast.data.utils import is_number

from .base_analyser import BaseAnalyser


if TYPE_CHECKING:
    from .stats_engine import StatsResult


IQR_MULTIPLIER = 1.5
"""Tukey's fence multiplier used system-wide."""

QUANTILE_METHOD = "linear"
"""numpy quantile method used for every quartile (displayed stats and fences alike)."""


def quartiles(values: Sequence[float] | np.ndarray) -> tuple[float, float]:
    """Return ``(Q1, Q3)`` of ``values`` using linear interpolation between order statistics."""
    q1, q3 = np.quantile(np.asarray(values, dtype=float), [0.25, 0.75], method=QUANTILE_METHOD)
    return float(q1), float(q3)


@dataclass(frozen=True)
class IQRFences:
    r"""Outlier fences :math:`[Q_1 - k\cdot IQR,\, Q_3 + k\cdot IQR]` with :math:`IQR = Q_3 - Q_1`.

    A value is an outlier iff it lies *strictly* outside the fences.

    Attributes:
        q1: First quartile.
        q3: Third quartile.
        multiplier: Fence multiplier ``k`` (1.5 by Tukey's rule).
    """

    q1: float
    q3: float
    multiplier: float = IQR_MULTIPLIER

    @classmethod
    def from_values(cls, values: Iterable[float], multiplier: float = IQR_MULTIPLIER) -> IQRFences:
        """Compute fences directly from raw numeric values."""
        q1, q3 = quartiles(list(values))
        return cls(q1=q1, q3=q3, multiplier=multiplier)

    @property
    def iqr(self) -> float:
        """Interquartile range."""
        return self.q3 - self.q1

    @property
    def lower(self) -> float:
        """Lower fence."""
        return self.q1 - self.multiplier * self.iqr

    @property
    def upper(self) -> float:
        """Upper fence."""
        return self.q3 + self.multiplier * self.iqr

    def is_outlier(self, value: float) -> bool:
        """Return True if ``value`` lies strictly outside the fences."""
        return value < self.lower or value > self.upper

    def count(self, values: Iterable[float]) -> int:
        """Count outliers in ``values``."""
        return sum(1 for v in values if self.is_outlier(v))


@dataclass(frozen=True)
class OutlierDetectionResult:
    """Per-cell outlier flags and the fences behind them.

    Attributes:
        outlier_mask: Boolean DataFrame (rows of the dataset x numeric columns); missing and
            non-numeric cells are never flagged.
        fences: IQR fences per numeric column (columns without present values are absent).
        n_outliers_per_column: Series with count of outliers per column.
        n_outliers_per_row: Series with count of outliers per row.
        threshold: Fence multiplier used.
    """

    outlier_mask: pd.DataFrame
    fences: dict[str, IQRFences]
    n_outliers_per_column: pd.Series
    n_outliers_per_row: pd.Series
    threshold: float

    @property
    def total_outliers(self) -> int:
        """Total number of flagged cells."""
        return int(self.n_outliers_per_column.sum())

    @property
    def column_names(self) -> list[str]:
        """Columns covered by the mask."""
        return self.outlier_mask.columns.tolist()


class IQROutlierDetector(BaseAnalyser):
    r"""Flag every numeric cell outside :math:`[Q_1 - k\cdot IQR,\, Q_3 + k\cdot IQR]`.

    The stats view and the cleaner always use :data:`IQR_MULTIPLIER`. This detector takes
    ``k`` as a parameter so the rule can be inspected at other strengths, e.g. to check
    that lowering ``k`` never flags fewer cells. Quartiles come from the column stats, so
    only columns classified numeric are covered and missing cells are never flagged.

    Attributes:
        threshold: Fence multiplier ``k`` (1.5 by default).
    """

    def __init__(
        self,
        dataset: Dataset,
        stats: StatsResult | None = None,
        threshold: float = IQR_MULTIPLIER,
    ) -> None:
        """Set up the detector.

        Args:
            dataset: Dataset to analyze.
            stats: Column statistics for ``dataset``; computed on demand if omitted.
            threshold: IQR multiplier for fence calculation (default: 1.5).
        """
        self._dataset = dataset
        self._stats = stats
        self.threshold = threshold
        self._fitted = False
        self._mask: pd.DataFrame | None = None
        self._fences: dict[str, IQRFences] = {}

    def fit(self) -> IQROutlierDetector:
        """Flag numeric cells outside the fences.

        Returns:
            Self for method chaining.
        """
        stats = self._stats
        if stats is None:
            from .stats_engine import StatsAnalyzer  # noqa: PLC0415

            stats = StatsAnalyzer(self._dataset).fit().result()

        frame = self._dataset.df
        mask = pd.DataFrame(False, index=frame.index, columns=list(stats.numeric_cols), dtype=bool)
        fences: dict[str, IQRFences] = {}
        for col in stats.numeric_cols:
            col_stats = stats[col]
            if col_stats.q1 is None or col_stats.q3 is None:
                continue
            fence = IQRFences(q1=col_stats.q1, q3=col_stats.q3, multiplier=self.threshold)
            fences[col] = fence
            mask[col] = [is_number(v) and fence.is_outlier(float(v)) for v in frame[col].tolist()]

        self._mask = mask.astype(bool)
        self._fences = fences
        self._fitted = True
        return self

    def result(self) -> OutlierDetectionResult:
        """Return the flags and per-column/per-row counts.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if not self._fitted or self._mask is None:
            raise ValueError("Must call fit() before result()")

        return OutlierDetectionResult(
            outlier_mask=self._mask,
            fences=dict(self._fences),
            n_outliers_per_column=self._mask.sum().astype(int),
            n_outliers_per_row=self._mask.sum(axis=1).astype(int),
            threshold=self.threshold,
        )


__all__ = [
    "IQR_MULTIPLIER",
    "QUANTILE_METHOD",
    "IQRFences",
    "IQROutlierDetector",
    "OutlierDetectionResult",
    "quartiles",
]
