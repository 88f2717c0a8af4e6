"""Row and cell transforms that return new datasets.

None of these functions modify their input; each builds a new :class:`Dataset`. Derived
artifacts (stats, correlations, forecasts) must be recomputed by the caller afterwards.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Literal

from .dataset import Dataset
from .utils import is_missing, is_present, looks_numeric


__all__ = ["filter_rows", "search_rows", "sort_rows", "update_cell"]


def update_cell(dataset: Dataset, row: int, column: str, value: Any) -> Dataset:
    """Return a copy of ``dataset`` with a single cell replaced.

    Raises:
        ConfigurationError: If ``column`` does not exist.
        IndexError: If ``row`` is out of range.
    """
    dataset.require_column(column)
    if not 0 <= row < dataset.n_rows:
        raise IndexError(f"Row {row} out of range for dataset with {dataset.n_rows} rows")
    frame = dataset.df
    frame.at[row, column] = value
    return dataset.with_frame(frame)


def _contains(value: Any, needle: str) -> bool:
    return is_present(value) and needle in str(value).lower()


def search_rows(dataset: Dataset, query: str) -> Dataset:
    """Keep rows where any cell contains ``query`` (case-insensitive substring match)."""
    if not query:
        return dataset
    needle = query.lower()
    frame = dataset.df
    mask = [any(_contains(v, needle) for v in row) for row in frame.itertuples(index=False)]
    return dataset.with_frame(frame.loc[mask])


def filter_rows(dataset: Dataset, column: str, value: str) -> Dataset:
    """Keep rows whose ``column`` cell contains ``value`` (case-insensitive substring match)."""
    dataset.require_column(column)
    if not value:
        return dataset
    needle = value.lower()
    frame = dataset.df
    mask = [_contains(v, needle) for v in frame[column].tolist()]
    return dataset.with_frame(frame.loc[mask])


def _compare(a: Any, b: Any) -> int:
    if looks_numeric(a) and looks_numeric(b):
        a, b = float(a), float(b)
    else:
        a, b = str(a).lower(), str(b).lower()
    return (a > b) - (a < b)


def sort_rows(
    dataset: Dataset,
    column: str,
    direction: Literal["ascending", "descending"] = "ascending",
) -> Dataset:
    """Sort rows by one column; missing cells always go last.

    Two cells compare numerically when both look numeric (numbers or numeric text), otherwise as
    lower-cased strings. The sort is stable.
    """
    dataset.require_column(column)
    if direction not in {"ascending", "descending"}:
        raise ValueError(f"Invalid direction='{direction}'. Use 'ascending' or 'descending'.")

    frame = dataset.df
    cells = frame[column].tolist()
    present = [i for i, v in enumerate(cells) if not is_missing(v)]
    missing = [i for i, v in enumerate(cells) if is_missing(v)]

    sign = 1 if direction == "ascending" else -1
    present.sort(key=cmp_to_key(lambda i, j: sign * _compare(cells[i], cells[j])))
    return dataset.with_frame(frame.iloc[present + missing])
