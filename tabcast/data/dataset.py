"""Immutable in-memory table shared by all engines."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pandas as pd

from tabcast.errors import ConfigurationError

from .utils import is_missing


__all__ = ["Dataset"]


class Dataset:
    """Ordered rows of scalar cells (number, text or missing) over an ordered column set.

    The rows are held in an object-dtype :class:`pandas.DataFrame` with a fresh ``RangeIndex``,
    so mixed number/text columns keep their raw cell values and row order is the insertion
    order. Instances are never mutated after construction: :attr:`df` returns a copy, and every
    transform (cleaning, cell edits, filtering) builds a new ``Dataset``.

    Example:
        >>> ds = Dataset.from_records(
        ...     [{"day": "2024-01-01", "sales": 3}, {"day": "2024-01-02", "sales": None}],
        ... )
        >>> ds.columns
        ('day', 'sales')
        >>> ds.n_rows
        2
    """

    def __init__(self, df: pd.DataFrame, columns: Sequence[str] | None = None) -> None:
        """Initialize the dataset from a frame.

        Args:
            df: Source frame. It is copied, so later changes to it do not leak in.
            columns: Optional display order; defaults to the frame's column order. Columns listed
                here but absent from the frame are added as all-missing columns.
        """
        cols = tuple(str(c) for c in (columns if columns is not None else df.columns))
        if len(set(cols)) != len(cols):
            raise ConfigurationError(f"Duplicate column names in {list(cols)}")
        source = df.rename(columns=str)
        # Cells are copied as Python objects; every missing marker becomes None.
        data = {
            col: [None if is_missing(v) else v for v in source[col].tolist()] if col in source else [None] * len(source)
            for col in cols
        }
        self._df = pd.DataFrame(data, columns=list(cols), dtype=object)
        self._columns = cols

    # ------------------------------------------------------------------ constructors
    @classmethod
    def from_records(
        cls,
        rows: Iterable[Mapping[str, Any]],
        columns: Sequence[str] | None = None,
    ) -> Dataset:
        """Build a dataset from row mappings.

        Keys missing from a row become missing cells, so every row exposes the same column set.
        Without an explicit ``columns`` order, columns appear in the order they are first
        encountered.
        """
        records = [dict(row) for row in rows]
        if columns is None:
            seen: dict[str, None] = {}
            for row in records:
                seen.update(dict.fromkeys(row))
            columns = list(seen)
        data = {col: [row.get(col) for row in records] for col in columns}
        return cls(pd.DataFrame(data, columns=list(columns), dtype=object), columns=columns)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> Dataset:
        """Build a dataset from an existing DataFrame (copied)."""
        return cls(df)

    # ------------------------------------------------------------------ accessors
    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in display order."""
        return self._columns

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self._df)

    @property
    def df(self) -> pd.DataFrame:
        """Return a copy of the underlying object-dtype frame (missing cells are ``None``)."""
        return self._df.copy()

    def column(self, name: str) -> pd.Series:
        """Return a copy of one column.

        Raises:
            ConfigurationError: If the column does not exist.
        """
        self.require_column(name)
        return self._df[name].copy()

    def require_column(self, name: str | None) -> str:
        """Validate a column selection and return it.

        Raises:
            ConfigurationError: If no column is selected or the column does not exist.
        """
        if not name:
            raise ConfigurationError("No column selected.")
        if name not in self._columns:
            raise ConfigurationError(f"Column '{name}' not found in dataset (columns: {list(self._columns)}).")
        return name

    def records(self) -> list[dict[str, Any]]:
        """Return rows as a list of plain dicts (missing cells are ``None``)."""
        return self._df.to_dict(orient="records")

    def with_frame(self, df: pd.DataFrame) -> Dataset:
        """Return a new dataset over ``df`` that keeps this dataset's column order."""
        return Dataset(df, columns=self._columns)

    def __len__(self) -> int:
        return self.n_rows

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self._columns == other._columns and self.records() == other.records()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Dataset(n_rows={self.n_rows}, columns={list(self._columns)})"
