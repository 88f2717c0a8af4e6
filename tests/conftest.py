"""Test configuration for tabcast."""

from pathlib import Path
import sys

import pytest


# Ensure the local package is importable when the repo isn't installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def daily_rows(values, start: str = "2024-01-01", time_col: str = "date", target_col: str = "sales"):
    """Build one row per day with ISO date strings."""
    import pandas as pd

    days = pd.date_range(start, periods=len(values), freq="D")
    return [{time_col: d.strftime("%Y-%m-%d"), target_col: v} for d, v in zip(days, values, strict=True)]


@pytest.fixture
def mixed_dataset():
    """Six rows with a numeric column (one outlier, one missing) and a categorical column."""
    from tabcast.data import Dataset

    return Dataset.from_records(
        [
            {"x": 1, "y": 2.0, "c": "a"},
            {"x": 2, "y": 4.0, "c": "b"},
            {"x": 3, "y": 6.0, "c": "a"},
            {"x": 4, "y": 8.0, "c": None},
            {"x": 100, "y": 10.0, "c": "a"},
            {"x": None, "y": 12.0, "c": "b"},
        ],
    )


@pytest.fixture
def linear_series_dataset():
    """Twelve daily observations 1..12 (a perfect linear trend)."""
    from tabcast.data import Dataset

    return Dataset.from_records(daily_rows(list(range(1, 13))))


@pytest.fixture
def linear_series_stats(linear_series_dataset):
    from tabcast.analysis import compute_column_stats

    return compute_column_stats(linear_series_dataset)


@pytest.fixture
def make_series():
    """Factory for daily ``date``/``sales`` datasets built from a list of values."""
    from tabcast.data import Dataset

    def _make(values, **kwargs):
        return Dataset.from_records(daily_rows(values, **kwargs))

    return _make
