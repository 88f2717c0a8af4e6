"""Tests for column statistics and the IQR outlier rule."""

import numpy as np
import pandas as pd
import pytest

from tabcast.analysis import (
    ColumnKind,
    IQRFences,
    IQROutlierDetector,
    OutlierDetectionResult,
    StatsAnalyzer,
    compute_column_stats,
)
from tabcast.analysis.stats_engine import describe_column
from tabcast.data import Dataset
from tabcast.errors import ConfigurationError


class TestDescribeColumn:
    """Test per-column statistics."""

    def test_numeric_column(self) -> None:
        stats = describe_column("x", [1, 2, 3, 4, 100, None])
        assert stats.kind is ColumnKind.NUMERIC
        assert (stats.count, stats.missing, stats.unique) == (5, 1, 5)
        assert stats.min == 1
        assert stats.max == 100
        assert stats.mean == pytest.approx(22.0)
        assert stats.median == pytest.approx(3.0)
        assert stats.q1 == pytest.approx(2.0)
        assert stats.q3 == pytest.approx(4.0)
        assert stats.outliers == 1
        assert stats.top_values == ()

    def test_std_is_population(self) -> None:
        stats = describe_column("x", [1, 2, 3, 4, 100])
        assert stats.std == pytest.approx(np.sqrt(1522.0))
        assert stats.std == pytest.approx(np.std([1, 2, 3, 4, 100], ddof=0))

    def test_categorical_top_values(self) -> None:
        stats = describe_column("c", ["a", "b", "a", None, "c", "b", "a", ""])
        assert stats.kind is ColumnKind.CATEGORICAL
        assert (stats.count, stats.missing, stats.unique) == (6, 2, 3)
        assert stats.top_values == (("a", 3), ("b", 2), ("c", 1))
        assert stats.mean is None
        assert stats.mode == "a"

    def test_ties_keep_first_encountered_order(self) -> None:
        stats = describe_column("c", ["y", "x", "x", "y", "z"])
        assert stats.top_values == (("y", 2), ("x", 2), ("z", 1))

    def test_top_values_capped_at_five(self) -> None:
        stats = describe_column("c", list("abcdefg"))
        assert len(stats.top_values) == 5

    def test_counts_are_case_sensitive(self) -> None:
        stats = describe_column("c", ["A", "a", "a"])
        assert stats.unique == 2
        assert stats.top_values[0] == ("a", 2)

    def test_mixed_column_is_categorical(self) -> None:
        stats = describe_column("m", [1, 2, "three"])
        assert stats.kind is ColumnKind.CATEGORICAL
        assert stats.q1 is None

    def test_booleans_are_categorical(self) -> None:
        stats = describe_column("b", [True, 1, True])
        assert stats.kind is ColumnKind.CATEGORICAL
        assert stats.unique == 2

    def test_all_missing_column_is_numeric_without_stats(self) -> None:
        stats = describe_column("e", [None, "", None])
        assert stats.kind is ColumnKind.NUMERIC
        assert stats.count == 0
        assert stats.missing == 3
        assert stats.mean is None
        assert stats.fences is None

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_quartile_ordering(self, seed: int) -> None:
        values = np.random.default_rng(seed).normal(size=37).tolist()
        stats = describe_column("r", values)
        assert stats.min <= stats.q1 <= stats.median <= stats.q3 <= stats.max


class TestStatsAnalyzer:
    """Test the analyzer over whole datasets."""

    def test_result_before_fit(self, mixed_dataset: Dataset) -> None:
        with pytest.raises(ValueError, match="Must call fit"):
            StatsAnalyzer(mixed_dataset).result()

    def test_classification(self, mixed_dataset: Dataset) -> None:
        stats = StatsAnalyzer(mixed_dataset).fit().result()
        assert stats.numeric_cols == ["x", "y"]
        assert stats.categorical_cols == ["c"]
        assert stats.n_rows == 6
        assert len(stats) == 3
        assert "x" in stats

    def test_summary_frame(self, mixed_dataset: Dataset) -> None:
        summary = compute_column_stats(mixed_dataset).summary
        assert isinstance(summary, pd.DataFrame)
        assert list(summary.index) == ["x", "y", "c"]
        assert summary.loc["x", "outliers"] == 1
        assert summary.loc["c", "kind"] == "categorical"

    def test_selected_columns(self, mixed_dataset: Dataset) -> None:
        stats = compute_column_stats(mixed_dataset, ["y"])
        assert list(stats.columns) == ["y"]

    def test_unknown_column(self, mixed_dataset: Dataset) -> None:
        with pytest.raises(ConfigurationError):
            compute_column_stats(mixed_dataset, ["missing_col"])


class TestIQRFences:
    """Test the fixed outlier rule."""

    def test_fences(self) -> None:
        fences = IQRFences.from_values([1, 2, 3, 4, 100])
        assert fences.iqr == pytest.approx(2.0)
        assert fences.lower == pytest.approx(-1.0)
        assert fences.upper == pytest.approx(7.0)

    def test_boundary_is_not_outlier(self) -> None:
        fences = IQRFences(q1=2.0, q3=4.0)
        assert not fences.is_outlier(7.0)
        assert not fences.is_outlier(-1.0)
        assert fences.is_outlier(7.000001)
        assert fences.is_outlier(-1.5)


class TestIQROutlierDetector:
    """Test IQR-based outlier detection over a dataset."""

    def test_default_threshold(self, mixed_dataset: Dataset) -> None:
        assert IQROutlierDetector(mixed_dataset).threshold == 1.5

    def test_detect_outliers(self, mixed_dataset: Dataset) -> None:
        result = IQROutlierDetector(mixed_dataset).fit().result()

        assert isinstance(result, OutlierDetectionResult)
        assert result.column_names == ["x", "y"]
        assert result.outlier_mask.shape == (6, 2)
        assert all(result.outlier_mask.dtypes == bool)
        assert result.outlier_mask["x"].tolist() == [False, False, False, False, True, False]
        assert result.n_outliers_per_column["x"] == 1
        assert result.total_outliers == 1

    def test_missing_cells_never_flagged(self, mixed_dataset: Dataset) -> None:
        result = IQROutlierDetector(mixed_dataset, threshold=0.0).fit().result()
        assert not result.outlier_mask.loc[5, "x"]

    def test_stricter_threshold_flags_more(self) -> None:
        values = np.random.default_rng(42).normal(50, 10, size=60).tolist() + [0, 150, 200]
        ds = Dataset.from_records([{"v": v} for v in values])

        counts = [IQROutlierDetector(ds, threshold=k).fit().result().total_outliers for k in (3.0, 1.5, 1.0, 0.5)]
        assert counts == sorted(counts)

    def test_result_before_fit(self, mixed_dataset: Dataset) -> None:
        with pytest.raises(ValueError, match="Must call fit"):
            IQROutlierDetector(mixed_dataset).result()
