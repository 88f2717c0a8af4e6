"""Column-role detection run once when a dataset is handed over by the import layer."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .dataset import Dataset
from .utils import is_number


__all__ = ["ColumnRoles", "detect_column_roles"]


_DATE_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}"),
    re.compile(r"^\d{2}/\d{2}/\d{4}"),
)


@dataclass(frozen=True)
class ColumnRoles:
    """Suggested column roles for a freshly imported dataset.

    These are *suggestions* based on the first row only; the authoritative numeric/categorical
    classification is :class:`~tabcast.analysis.stats_engine.StatsResult`.

    Attributes:
        numeric_cols: Columns whose first-row value is a number.
        date_cols: Columns whose first-row value is ``YYYY-MM-DD...`` or ``MM/DD/YYYY...`` text.
        time_col: First date column, if any.
        x_col: Suggested x axis for display.
        y_cols: Suggested y series for display.
    """

    numeric_cols: tuple[str, ...]
    date_cols: tuple[str, ...]
    time_col: str | None
    x_col: str | None
    y_cols: tuple[str, ...]


def detect_column_roles(dataset: Dataset) -> ColumnRoles:
    """Suggest time, x and y columns from the first row of ``dataset``.

    Preference order for the display axes: the first date column against the first numeric
    column, else the first two numeric columns, else simply the first two columns.
    """
    if dataset.n_rows == 0:
        return ColumnRoles(numeric_cols=(), date_cols=(), time_col=None, x_col=None, y_cols=())

    first = dataset.records()[0]
    numeric_cols = tuple(col for col in dataset.columns if is_number(first[col]))
    date_cols = tuple(
        col
        for col in dataset.columns
        if isinstance(first[col], str) and any(p.match(first[col]) for p in _DATE_PATTERNS)
    )

    time_col = date_cols[0] if date_cols else None
    if date_cols:
        x_col, y_cols = date_cols[0], numeric_cols[:1]
    elif len(numeric_cols) > 1:
        x_col, y_cols = numeric_cols[0], numeric_cols[1:2]
    elif len(dataset.columns) > 1:
        x_col, y_cols = dataset.columns[0], dataset.columns[1:2]
    else:
        x_col, y_cols = None, ()

    return ColumnRoles(
        numeric_cols=numeric_cols,
        date_cols=date_cols,
        time_col=time_col,
        x_col=x_col,
        y_cols=tuple(y_cols),
    )
