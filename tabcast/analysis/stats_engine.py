"""Per-column descriptive statistics and the numeric/categorical classification."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

import numpy as np
import pandas as pd

from tabcast.data.dataset import Dataset
from tabcast.data.utils import is_number, is_present

from .base_analyser import BaseAnalyser
from .outlier_detector import IQR_MULTIPLIER, IQRFences, quartiles


logger = logging.getLogger(__name__)

TOP_VALUES = 5


class ColumnKind(StrEnum):
    """Column classification produced by the stats engine."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class ColumnStats:
    """Descriptive statistics for one column.

    Numeric attributes are ``None`` for categorical columns and for numeric columns without any
    present value; ``top_values`` is empty for numeric columns.

    Attributes:
        name: Column name.
        kind: ``numeric`` iff every present value is a number.
        count: Number of present values.
        missing: Number of missing cells.
        unique: Number of distinct present values.
        min: Minimum.
        max: Maximum.
        mean: Arithmetic mean.
        median: Median.
        std: Population standard deviation (``ddof=0``).
        q1: First quartile (linear interpolation).
        q3: Third quartile (linear interpolation).
        outliers: Number of values outside the 1.5 IQR fences.
        top_values: Up to five ``(value, count)`` pairs, most frequent first, ties in order of
            first appearance.
    """

    name: str
    kind: ColumnKind
    count: int
    missing: int
    unique: int
    min: float | None = None
    max: float | None = None
    mean: float | None = None
    median: float | None = None
    std: float | None = None
    q1: float | None = None
    q3: float | None = None
    outliers: int | None = None
    top_values: tuple[tuple[Any, int], ...] = field(default=())

    @property
    def is_numeric(self) -> bool:
        """True for numeric columns."""
        return self.kind is ColumnKind.NUMERIC

    @property
    def fences(self) -> IQRFences | None:
        """IQR outlier fences, or ``None`` when the quartiles are undefined."""
        if self.q1 is None or self.q3 is None:
            return None
        return IQRFences(q1=self.q1, q3=self.q3, multiplier=IQR_MULTIPLIER)

    @property
    def mode(self) -> Any:
        """Most frequent present value of a categorical column (``None`` if there is none)."""
        return self.top_values[0][0] if self.top_values else None


@dataclass(frozen=True)
class StatsResult:
    """Column statistics keyed by column name, in dataset column order.

    This is the single place where column types are decided; the correlation, cleaning and
    forecasting engines read ``numeric_cols`` from here rather than re-inspecting cells.
    """

    columns: Mapping[str, ColumnStats]
    n_rows: int

    def __getitem__(self, column: str) -> ColumnStats:
        return self.columns[column]

    def __contains__(self, column: object) -> bool:
        return column in self.columns

    def __iter__(self) -> Iterator[ColumnStats]:
        return iter(self.columns.values())

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def numeric_cols(self) -> list[str]:
        """Numeric columns in dataset order."""
        return [name for name, s in self.columns.items() if s.is_numeric]

    @property
    def categorical_cols(self) -> list[str]:
        """Categorical columns in dataset order."""
        return [name for name, s in self.columns.items() if not s.is_numeric]

    @property
    def summary(self) -> pd.DataFrame:
        """Tidy table with one row per column (index = column name)."""
        rows = []
        for s in self.columns.values():
            rows.append(
                {
                    "column": s.name,
                    "kind": str(s.kind),
                    "count": s.count,
                    "missing": s.missing,
                    "unique": s.unique,
                    "min": s.min,
                    "max": s.max,
                    "mean": s.mean,
                    "median": s.median,
                    "std": s.std,
                    "q1": s.q1,
                    "q3": s.q3,
                    "outliers": s.outliers,
                    "top_values": list(s.top_values),
                },
            )
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).set_index("column")


def _frequency_key(value: Any) -> tuple[bool, Any]:
    # Keep True distinct from 1 (they hash equal in Python).
    return isinstance(value, (bool, np.bool_)), value


def describe_column(name: str, cells: Iterable[Any]) -> ColumnStats:
    """Compute :class:`ColumnStats` for one column's cells."""
    cells = list(cells)
    present = [v for v in cells if is_present(v)]
    numbers = [float(v) for v in present if is_number(v)]
    counts = Counter(_frequency_key(v) for v in present)

    base = {
        "name": name,
        "count": len(present),
        "missing": len(cells) - len(present),
        "unique": len(counts),
    }

    if len(numbers) != len(present):
        top = tuple((key[1], n) for key, n in counts.most_common(TOP_VALUES))
        return ColumnStats(kind=ColumnKind.CATEGORICAL, top_values=top, **base)

    if not numbers:
        return ColumnStats(kind=ColumnKind.NUMERIC, **base)

    values = pd.Series(numbers, dtype=float)
    q1, q3 = quartiles(values.to_numpy())
    fences = IQRFences(q1=q1, q3=q3, multiplier=IQR_MULTIPLIER)
    return ColumnStats(
        kind=ColumnKind.NUMERIC,
        min=float(values.min()),
        max=float(values.max()),
        mean=float(values.mean()),
        median=float(values.median()),
        std=float(values.std(ddof=0)),
        q1=q1,
        q3=q3,
        outliers=fences.count(numbers),
        **base,
    )


class StatsAnalyzer(BaseAnalyser):
    """Analyzer computing :class:`ColumnStats` for every (or selected) dataset column.

    Example:
        >>> from tabcast.data import Dataset
        >>> ds = Dataset.from_records([{"x": 1}, {"x": 2}, {"x": None}, {"x": 40}])
        >>> stats = StatsAnalyzer(ds).fit().result()
        >>> stats["x"].kind, stats["x"].missing
        (<ColumnKind.NUMERIC: 'numeric'>, 1)
    """

    def __init__(self, dataset: Dataset, columns: Iterable[str] | None = None) -> None:
        """Initialize the analyzer.

        Args:
            dataset: Dataset to describe.
            columns: Columns to describe (defaults to all columns, in dataset order).
        """
        self._dataset = dataset
        self._columns = list(columns) if columns is not None else list(dataset.columns)
        self._result: StatsResult | None = None

    def fit(self) -> Self:
        """Compute statistics for the selected columns.

        Raises:
            ConfigurationError: If a selected column does not exist.
        """
        for col in self._columns:
            self._dataset.require_column(col)

        frame = self._dataset.df
        columns = {col: describe_column(col, frame[col].tolist()) for col in self._columns}
        self._result = StatsResult(columns=columns, n_rows=self._dataset.n_rows)
        logger.debug(
            "Computed stats for %d columns (%d numeric)",
            len(columns),
            len(self._result.numeric_cols),
        )
        return self

    def result(self) -> StatsResult:
        """Return the computed statistics.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result


def compute_column_stats(dataset: Dataset, columns: Iterable[str] | None = None) -> StatsResult:
    """Functional shortcut for ``StatsAnalyzer(dataset, columns).fit().result()``."""
    return StatsAnalyzer(dataset, columns).fit().result()


__all__ = [
    "TOP_VALUES",
    "ColumnKind",
    "ColumnStats",
    "StatsAnalyzer",
    "StatsResult",
    "compute_column_stats",
    "describe_column",
]
