"""Tests for DataCleaner."""

import logging

import pytest

from tabcast.analysis import CleaningResult, DataCleaner, clean_column, compute_column_stats
from tabcast.config import CleaningMethod, CleaningTarget
from tabcast.data import Dataset, is_missing
from tabcast.errors import ConfigurationError


def column_values(ds: Dataset, column: str) -> list:
    return [row[column] for row in ds.records()]


class TestReplacement:
    """Test mean / median / zero replacement."""

    def test_mean_both(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", target="both", method="mean")
        assert isinstance(res, CleaningResult)
        assert column_values(res.dataset, "x") == [1, 2, 3, 4, 22.0, 22.0]
        assert res.n_replaced == 2
        assert res.n_removed == 0
        assert res.replacement == pytest.approx(22.0)

    def test_median_missing_only(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", target="missing", method="median")
        assert column_values(res.dataset, "x") == [1, 2, 3, 4, 100, 3.0]
        assert res.n_replaced == 1

    def test_zero_outliers_only(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", target="outliers", method="zero")
        assert column_values(res.dataset, "x") == [1, 2, 3, 4, 0, None]

    def test_categorical_missing_gets_mode(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "c", target="both", method="mean")
        assert column_values(res.dataset, "c") == ["a", "b", "a", "a", "a", "b"]
        assert res.n_replaced == 1

    def test_categorical_outliers_untouched(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "c", target="outliers", method="median")
        assert res.dataset == mixed_dataset
        assert res.n_replaced == 0

    def test_other_columns_untouched(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", method="zero")
        assert column_values(res.dataset, "c") == column_values(mixed_dataset, "c")

    def test_all_missing_column_replaces_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        ds = Dataset.from_records([{"e": None}, {"e": ""}])
        with caplog.at_level(logging.WARNING, logger="tabcast"):
            res = clean_column(ds, "e", target="missing", method="mean")
        assert res.n_replaced == 0
        assert all(is_missing(v) for v in column_values(res.dataset, "e"))
        assert "nothing replaced" in caplog.text


class TestRemoval:
    """Test row removal."""

    def test_remove_both(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", target="both", method="remove")
        assert res.n_rows_before == 6
        assert res.n_rows_after == 4
        assert column_values(res.dataset, "x") == [1, 2, 3, 4]
        assert res.message == "Removed 2 rows with missing values or outliers in 'x'."

    def test_remove_both_leaves_no_missing_or_outlier(self, mixed_dataset: Dataset) -> None:
        fences = compute_column_stats(mixed_dataset)["x"].fences
        res = clean_column(mixed_dataset, "x", target="both", method="remove")
        values = column_values(res.dataset, "x")
        assert res.n_rows_after <= res.n_rows_before
        assert not any(is_missing(v) for v in values)
        assert not any(fences.is_outlier(v) for v in values)

    def test_remove_missing_only(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "x", target="missing", method="remove")
        assert column_values(res.dataset, "x") == [1, 2, 3, 4, 100]

    def test_remove_outliers_on_categorical_keeps_rows(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "c", target="outliers", method="remove")
        assert res.n_rows_after == 6

    def test_remove_missing_on_categorical(self, mixed_dataset: Dataset) -> None:
        res = clean_column(mixed_dataset, "c", target="missing", method="remove")
        assert res.n_rows_after == 5


class TestDataCleaner:
    """Test validation and the analyzer protocol."""

    def test_no_column_selected(self, mixed_dataset: Dataset) -> None:
        before = mixed_dataset.records()
        with pytest.raises(ConfigurationError, match="No column selected"):
            DataCleaner(mixed_dataset, None).fit()
        assert mixed_dataset.records() == before

    def test_invalid_method(self, mixed_dataset: Dataset) -> None:
        with pytest.raises(ConfigurationError, match="cleaning_method"):
            DataCleaner(mixed_dataset, "x", method="mode").fit()

    def test_input_is_not_modified(self, mixed_dataset: Dataset) -> None:
        before = mixed_dataset.records()
        clean_column(mixed_dataset, "x", target="both", method="remove")
        clean_column(mixed_dataset, "x", target="both", method="mean")
        assert mixed_dataset.records() == before

    def test_enum_options(self, mixed_dataset: Dataset) -> None:
        res = (
            DataCleaner(mixed_dataset, "x", target=CleaningTarget.MISSING, method=CleaningMethod.ZERO)
            .fit()
            .result()
        )
        assert res.method is CleaningMethod.ZERO
        assert res.message == "Replaced 1 missing values in 'x'."

    def test_uses_given_stats(self, mixed_dataset: Dataset) -> None:
        stats = compute_column_stats(mixed_dataset)
        res = DataCleaner(mixed_dataset, "x", method="median", stats=stats).fit().result()
        assert res.replacement == stats["x"].median

    def test_result_before_fit(self, mixed_dataset: Dataset) -> None:
        with pytest.raises(ValueError, match="Must call fit"):
            DataCleaner(mixed_dataset, "x").result()
