"""Cell-level predicates shared by the dataset and every engine."""

from __future__ import annotations

import numbers
from typing import Any

import numpy as np
import pandas as pd


__all__ = ["is_missing", "is_number", "is_present", "looks_numeric"]


def is_missing(value: Any) -> bool:
    """Return True for ``None``, NaN/NaT/``pd.NA`` markers and the empty string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # pd.isna on array-likes returns an array; such cells are not missing markers.
        return False


def is_present(value: Any) -> bool:
    """Inverse of :func:`is_missing`."""
    return not is_missing(value)


def is_number(value: Any) -> bool:
    """Return True for real numbers, excluding booleans.

    Booleans are treated as categorical values, and missing markers (NaN) are never numbers.
    """
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, numbers.Real) and not is_missing(value)


def looks_numeric(value: Any) -> bool:
    """Return True when a cell is a number or text that parses as one (used for sorting)."""
    if is_number(value):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False
