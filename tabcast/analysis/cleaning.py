"""Imputation and row removal for missing values and IQR outliers in one column."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Self

from tabcast.config import CleaningMethod, CleaningTarget, coerce_option
from tabcast.data.dataset import Dataset
from tabcast.data.utils import is_missing, is_number

from .base_analyser import BaseAnalyser
from .stats_engine import ColumnStats, StatsResult, compute_column_stats


logger = logging.getLogger(__name__)


_TARGET_LABELS = {
    CleaningTarget.MISSING: "missing values",
    CleaningTarget.OUTLIERS: "outliers",
    CleaningTarget.BOTH: "missing values or outliers",
}


@dataclass(frozen=True)
class CleaningResult:
    """Outcome of a cleaning run.

    Attributes:
        dataset: The cleaned dataset (a new object; the input is untouched).
        column: Column that was cleaned.
        method: Method applied.
        target: Cell selection applied.
        n_rows_before: Row count of the input dataset.
        n_rows_after: Row count of the cleaned dataset.
        n_replaced: Number of cells replaced (0 for ``remove``).
        replacement: Value written into matching cells (``None`` for ``remove``).
    """

    dataset: Dataset
    column: str
    method: CleaningMethod
    target: CleaningTarget
    n_rows_before: int
    n_rows_after: int
    n_replaced: int
    replacement: Any = None

    @property
    def n_removed(self) -> int:
        """Number of rows dropped."""
        return self.n_rows_before - self.n_rows_after

    @property
    def message(self) -> str:
        """Short human-readable summary of what happened."""
        label = _TARGET_LABELS[self.target]
        if self.method is CleaningMethod.REMOVE:
            return f"Removed {self.n_removed} rows with {label} in '{self.column}'."
        return f"Replaced {self.n_replaced} {label} in '{self.column}'."


class DataCleaner(BaseAnalyser):
    """Clean one column of a dataset according to a method and a target selection.

    Cells are classified with the column's :class:`~tabcast.analysis.stats_engine.ColumnStats`:
    *missing* (absent or empty), *outlier* (numeric and outside the 1.5 IQR fences), both or
    neither.

    - ``mean`` / ``median`` / ``zero`` replace matching cells of a numeric column with the column
      mean, median or 0. For a categorical column only missing cells are replaced, always with
      the most frequent value.
    - ``remove`` drops rows: first rows with a missing cell (if the target includes missing),
      then, for numeric columns, rows with an outlier (if the target includes outliers). The
      fences come from the stats computed *before* removal and are not recomputed in between.

    The input dataset is never modified; stats for the cleaned dataset must be recomputed by
    the caller.

    Example:
        >>> res = DataCleaner(ds, "price", target="both", method="median").fit().result()
        >>> res.dataset.n_rows == ds.n_rows
        True
    """

    def __init__(
        self,
        dataset: Dataset,
        column: str | None,
        *,
        target: CleaningTarget | str = CleaningTarget.BOTH,
        method: CleaningMethod | str = CleaningMethod.MEAN,
        stats: StatsResult | None = None,
    ) -> None:
        """Initialize the cleaner.

        Args:
            dataset: Dataset to clean.
            column: Column to clean.
            target: ``missing``, ``outliers`` or ``both``.
            method: ``mean``, ``median``, ``zero`` or ``remove``.
            stats: Current stats for ``dataset``; the column is described on demand if omitted.
        """
        self._dataset = dataset
        self._column = column
        self._target = target
        self._method = method
        self._stats = stats
        self._result: CleaningResult | None = None

    def fit(self) -> Self:
        """Validate the selection and build the cleaned dataset.

        Raises:
            ConfigurationError: If no (or an unknown) column is selected, or an option is invalid.
        """
        column = self._dataset.require_column(self._column)
        target = coerce_option(CleaningTarget, self._target, "cleaning_target")
        method = coerce_option(CleaningMethod, self._method, "cleaning_method")

        if self._stats is not None and column in self._stats:
            col_stats = self._stats[column]
        else:
            col_stats = compute_column_stats(self._dataset, [column])[column]

        frame = self._dataset.df
        cells = frame[column].tolist()
        missing = [is_missing(v) for v in cells]
        fences = col_stats.fences if col_stats.is_numeric else None
        outliers = [fences is not None and is_number(v) and fences.is_outlier(float(v)) for v in cells]

        n_replaced = 0
        replacement = None
        if method is CleaningMethod.REMOVE:
            keep = [True] * len(cells)
            if target.includes_missing:
                keep = [k and not m for k, m in zip(keep, missing, strict=True)]
            if col_stats.is_numeric and target.includes_outliers:
                keep = [k and not o for k, o in zip(keep, outliers, strict=True)]
            frame = frame.loc[keep]
        else:
            replacement, matches = self._replacement_plan(col_stats, method, target, missing, outliers)
            n_replaced = sum(matches)
            if n_replaced:
                frame.loc[matches, column] = replacement

        cleaned = self._dataset.with_frame(frame)
        self._result = CleaningResult(
            dataset=cleaned,
            column=column,
            method=method,
            target=target,
            n_rows_before=self._dataset.n_rows,
            n_rows_after=cleaned.n_rows,
            n_replaced=n_replaced,
            replacement=replacement,
        )
        logger.info("%s", self._result.message)
        return self

    @staticmethod
    def _replacement_plan(
        col_stats: ColumnStats,
        method: CleaningMethod,
        target: CleaningTarget,
        missing: list[bool],
        outliers: list[bool],
    ) -> tuple[Any, list[bool]]:
        if col_stats.is_numeric:
            replacement = {
                CleaningMethod.MEAN: col_stats.mean,
                CleaningMethod.MEDIAN: col_stats.median,
                CleaningMethod.ZERO: 0,
            }[method]
            matches = [
                (target.includes_missing and m) or (target.includes_outliers and o)
                for m, o in zip(missing, outliers, strict=True)
            ]
        else:
            replacement = col_stats.mode
            matches = [target.includes_missing and m for m in missing]

        if replacement is None:
            if any(matches):
                logger.warning(
                    "Column '%s' has no present values; %s replacement is undefined, nothing replaced",
                    col_stats.name,
                    method,
                )
            return None, [False] * len(missing)
        return replacement, matches

    def result(self) -> CleaningResult:
        """Return the cleaning outcome.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result


def clean_column(
    dataset: Dataset,
    column: str | None,
    *,
    target: CleaningTarget | str = CleaningTarget.BOTH,
    method: CleaningMethod | str = CleaningMethod.MEAN,
    stats: StatsResult | None = None,
) -> CleaningResult:
    """Functional shortcut for ``DataCleaner(...).fit().result()``."""
    return DataCleaner(dataset, column, target=target, method=method, stats=stats).fit().result()


__all__ = ["CleaningResult", "DataCleaner", "clean_column"]
