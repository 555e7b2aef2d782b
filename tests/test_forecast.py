"""Tests for atsa_bayes.forecast."""

import numpy as np
import pytest

from atsa_bayes.errors import InvalidHorizonError
from atsa_bayes.forecast import extend_for_forecast, forecast_positions


class TestExtendForForecast:

    def test_appends_missing_markers(self):
        y_ext, n = extend_for_forecast([1, 2, 3], 2)
        assert n == 5
        np.testing.assert_array_equal(y_ext[:3], [1.0, 2.0, 3.0])
        assert np.isnan(y_ext[3:]).all()

    def test_empty_sequence_zero_horizon(self):
        y_ext, n = extend_for_forecast([], 0)
        assert n == 0
        assert y_ext.shape == (0,)

    def test_zero_horizon_is_a_copy(self):
        y = np.array([1.0, 2.0])
        y_ext, n = extend_for_forecast(y, 0)
        assert n == 2
        y_ext[0] = 10.0
        assert y[0] == 1.0

    def test_input_not_modified(self):
        y = [4.0, 5.0]
        extend_for_forecast(y, 3)
        assert y == [4.0, 5.0]

    def test_negative_horizon(self):
        with pytest.raises(InvalidHorizonError):
            extend_for_forecast([1, 2, 3], -1)

    def test_fractional_horizon(self):
        with pytest.raises(InvalidHorizonError):
            extend_for_forecast([1, 2, 3], 1.5)

    @pytest.mark.parametrize("horizon", [float("nan"), float("inf"), None, "2"])
    def test_non_numeric_horizon(self, horizon):
        with pytest.raises(InvalidHorizonError, match="non-negative integer"):
            extend_for_forecast([1, 2, 3], horizon)

    def test_integral_float_horizon(self):
        y_ext, n = extend_for_forecast([1.0], 2.0)
        assert n == 3

    def test_matrix_extends_time_axis(self):
        y = np.arange(6.0).reshape(2, 3)
        y_ext, n = extend_for_forecast(y, 2)
        assert y_ext.shape == (2, 5)
        assert n == 5
        assert np.isnan(y_ext[:, 3:]).all()

    def test_existing_missing_values_kept(self):
        y_ext, _ = extend_for_forecast([1.0, np.nan, 3.0], 1)
        assert np.isnan(y_ext[1])
        assert y_ext[2] == 3.0


class TestForecastPositions:

    def test_positions(self):
        np.testing.assert_array_equal(forecast_positions(3, 2), [3, 4])

    def test_negative(self):
        with pytest.raises(InvalidHorizonError):
            forecast_positions(3, -2)

    def test_nan_horizon(self):
        with pytest.raises(InvalidHorizonError):
            forecast_positions(3, float("nan"))
