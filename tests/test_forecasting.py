"""Tests for series preparation and the ForecastingEngine."""

import logging
import math

import numpy as np
import pandas as pd
import pytest

from tabcast.analysis import (
    ForecastingEngine,
    ForecastResult,
    LinearTrendModel,
    forecast_series,
    parse_instant,
    prepare_series,
    run_forecast,
)
from tabcast.data import Dataset
from tabcast.errors import ConfigurationError, InsufficientDataError


class TestParseInstant:
    """Test time cell parsing."""

    def test_iso_string(self) -> None:
        assert parse_instant("2024-03-01") == pd.Timestamp("2024-03-01")

    def test_us_string(self) -> None:
        assert parse_instant("03/01/2024") == pd.Timestamp("2024-03-01")

    def test_epoch_milliseconds(self) -> None:
        assert parse_instant(86_400_000) == pd.Timestamp("1970-01-02")

    def test_timezone_converted_to_utc(self) -> None:
        assert parse_instant("2024-01-01T00:00:00+02:00") == pd.Timestamp("2023-12-31 22:00:00")

    @pytest.mark.parametrize("value", [None, "", "not a date", True])
    def test_unparseable(self, value) -> None:
        assert parse_instant(value) is None


class TestPrepareSeries:
    """Test extraction of the (instant, value) series."""

    def test_sorted_and_filtered(self) -> None:
        rows = [
            {"date": "2024-01-03", "sales": 3},
            {"date": "2024-01-01", "sales": 1},
            {"date": None, "sales": 9},
            {"date": "2024-01-02", "sales": None},
        ] + [{"date": f"2024-02-{d:02d}", "sales": d} for d in range(1, 10)]
        series = prepare_series(Dataset.from_records(rows), "date", "sales")
        assert len(series) == 11
        assert series.times.is_monotonic_increasing
        assert series.values[:2].tolist() == [1.0, 3.0]

    def test_equal_instants_keep_row_order(self, make_series) -> None:
        ds = make_series(list(range(10)))
        rows = ds.records()
        rows.insert(0, {"date": rows[4]["date"], "sales": 99})
        series = prepare_series(Dataset.from_records(rows), "date", "sales")
        assert series.values[4:6].tolist() == [99.0, 4.0]

    def test_unparseable_times_dropped_with_warning(self, make_series, caplog: pytest.LogCaptureFixture) -> None:
        rows = make_series(list(range(10))).records() + [{"date": "someday", "sales": 5}]
        with caplog.at_level(logging.WARNING, logger="tabcast"):
            series = prepare_series(Dataset.from_records(rows), "date", "sales")
        assert len(series) == 10
        assert "unparseable" in caplog.text

    def test_fails_below_ten_points(self, make_series) -> None:
        with pytest.raises(InsufficientDataError, match="Not enough data") as excinfo:
            prepare_series(make_series(list(range(9))), "date", "sales")
        assert excinfo.value.n_available == 9
        assert excinfo.value.n_required == 10
        assert excinfo.value.report().kind == "insufficient_data"

    def test_succeeds_at_exactly_ten_points(self, make_series) -> None:
        series = prepare_series(make_series(list(range(10))), "date", "sales")
        assert len(series) == 10
        assert series.train_size() == 8

    def test_missing_selection(self, linear_series_dataset: Dataset) -> None:
        with pytest.raises(ConfigurationError, match="Select"):
            prepare_series(linear_series_dataset, None, "sales")

    def test_non_numeric_target(self, linear_series_dataset: Dataset) -> None:
        with pytest.raises(ConfigurationError, match="not numeric"):
            prepare_series(linear_series_dataset, "sales", "date")

    def test_epoch_time_column(self) -> None:
        rows = [{"t": i * 86_400_000, "v": float(i)} for i in range(12)]
        series = prepare_series(Dataset.from_records(rows), "t", "v")
        assert series.step == pd.Timedelta(days=1)


class TestForecastingEngine:
    """Test the end-to-end forecast on the 12-point linear series."""

    def test_linear_model(self, linear_series_dataset: Dataset, linear_series_stats) -> None:
        res = ForecastingEngine(
            linear_series_dataset,
            "date",
            "sales",
            model="linear",
            stats=linear_series_stats,
        ).fit().result()

        assert isinstance(res, ForecastResult)
        assert res.model_id == "linear"
        assert res.model_name == "Linear Regression"
        assert (res.n_train, res.n_test) == (9, 3)
        assert res.params["slope"] == pytest.approx(1.0)
        assert res.params["intercept"] == pytest.approx(1.0)
        assert res.metrics.rmse == pytest.approx(0.0, abs=1e-9)
        assert res.metrics.r2 == pytest.approx(1.0)

    def test_forecast_frame(self, linear_series_dataset: Dataset) -> None:
        res = forecast_series(linear_series_dataset, "date", "sales", horizon=3)
        assert res.forecast["timestamp"].tolist() == list(pd.date_range("2024-01-13", periods=3, freq="D"))
        np.testing.assert_allclose(res.forecast["forecast"], [13.0, 14.0, 15.0])
        assert res.step == pd.Timedelta(days=1)

    def test_points_layout(self, linear_series_dataset: Dataset) -> None:
        res = forecast_series(linear_series_dataset, "date", "sales", horizon=10)
        points = res.points

        assert list(points.columns) == ["timestamp", "actual", "predicted", "forecast"]
        assert len(points) == 12 + 3 + 10
        assert points["timestamp"].is_monotonic_increasing

        # Test timestamps appear twice: the historical row first, then the test row.
        day10 = points[points["timestamp"] == pd.Timestamp("2024-01-10")]
        assert len(day10) == 2
        assert math.isnan(day10.iloc[0]["predicted"])
        assert day10.iloc[1]["predicted"] == pytest.approx(10.0)

        horizon = points[points["forecast"].notna()]
        assert horizon["actual"].isna().all()
        assert horizon["timestamp"].min() == pd.Timestamp("2024-01-13")

    def test_moving_average_model(self, linear_series_dataset: Dataset) -> None:
        res = forecast_series(linear_series_dataset, "date", "sales", model="moving-average", horizon=2)
        assert res.model_id == "moving-average"
        assert res.model_name == "Moving Average (3)"
        assert res.test_predictions["predicted"].iloc[0] == pytest.approx(8.0)
        assert res.metrics.rmse == pytest.approx(2.0)
        np.testing.assert_allclose(res.forecast["forecast"], [11.0, 11.0])

    def test_constant_series_has_undefined_r2(self, make_series) -> None:
        res = forecast_series(make_series([5.0] * 10), "date", "sales")
        assert res.metrics.rmse == pytest.approx(0.0)
        assert not res.metrics.r2_defined

    @pytest.mark.parametrize("model", ["exp", "ma-5", "arima"])
    def test_only_user_models_selectable(self, linear_series_dataset: Dataset, model: str) -> None:
        with pytest.raises(ConfigurationError, match="model"):
            ForecastingEngine(linear_series_dataset, "date", "sales", model=model).fit()

    @pytest.mark.parametrize("horizon", [0, -1, 2.5, True])
    def test_invalid_horizon(self, linear_series_dataset: Dataset, horizon) -> None:
        with pytest.raises(ConfigurationError, match="horizon"):
            ForecastingEngine(linear_series_dataset, "date", "sales", horizon=horizon).fit()

    def test_result_before_fit(self, linear_series_dataset: Dataset) -> None:
        with pytest.raises(ValueError, match="Must call fit"):
            ForecastingEngine(linear_series_dataset, "date", "sales").result()


class TestRunForecast:
    """Test the split handling of run_forecast."""

    def test_empty_test_split(self, linear_series_dataset: Dataset) -> None:
        series = prepare_series(linear_series_dataset, "date", "sales")
        res = run_forecast(series, LinearTrendModel(), horizon=2, train_ratio=1.0)
        assert res.n_test == 0
        assert res.test_predictions.empty
        assert res.metrics.n_obs == 0
        assert math.isnan(res.metrics.rmse)
        assert len(res.forecast) == 2

    def test_invalid_ratio(self, linear_series_dataset: Dataset) -> None:
        series = prepare_series(linear_series_dataset, "date", "sales")
        with pytest.raises(ConfigurationError, match="train_ratio"):
            run_forecast(series, LinearTrendModel(), train_ratio=0.0)

    def test_empty_training_split(self, linear_series_dataset: Dataset) -> None:
        series = prepare_series(linear_series_dataset, "date", "sales")
        with pytest.raises(InsufficientDataError):
            run_forecast(series, LinearTrendModel(), train_ratio=0.05)
