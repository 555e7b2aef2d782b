"""Tests for atsa_bayes.posterior."""

import numpy as np
import pytest

from atsa_bayes.errors import UnknownParameterError
from atsa_bayes.posterior import DrawTable, PosteriorHandle, extract, extract_chains

from conftest import make_fit


class TestExtract:

    def test_fitted_model_is_a_handle(self, mu_sigma_fit):
        assert isinstance(mu_sigma_fit, PosteriorHandle)

    def test_all_parameters(self, mu_sigma_fit):
        table = extract(mu_sigma_fit)
        assert set(table) == {"mu", "sigma", "pred"}
        assert table.n_draws == 100

    def test_chains_stacked_in_order(self, mu_sigma_fit):
        table = extract(mu_sigma_fit, ["mu"])
        raw = mu_sigma_fit.get_draws("mu")
        np.testing.assert_array_equal(table["mu"][:50], raw[0])
        np.testing.assert_array_equal(table["mu"][50:], raw[1])

    def test_vector_parameter_shape(self, mu_sigma_fit):
        table = extract(mu_sigma_fit, "pred")
        assert table["pred"].shape == (100, 4)

    def test_idempotent(self, mu_sigma_fit):
        a = extract(mu_sigma_fit, ["mu", "pred"])
        b = extract(mu_sigma_fit, ["mu", "pred"])
        for name in ("mu", "pred"):
            np.testing.assert_array_equal(a[name], b[name])

    def test_unknown_parameter(self):
        fit = make_fit({"mu": np.zeros((1, 10)), "sigma": np.ones((1, 10))})
        with pytest.raises(UnknownParameterError, match="gamma"):
            extract(fit, ["gamma"])

    def test_unknown_checked_before_reading(self):
        class Handle:
            reads = []

            def monitored_parameters(self):
                return frozenset({"mu", "sigma"})

            def get_draws(self, name):
                self.reads.append(name)
                return np.zeros((1, 5))

        handle = Handle()
        with pytest.raises(UnknownParameterError):
            extract(handle, ["mu", "gamma"])
        assert handle.reads == []

    def test_validated_against_fit_time_metadata(self, mu_sigma_fit):
        # a variable added to the InferenceData after the fit is not monitored
        mu_sigma_fit.idata.posterior["late"] = mu_sigma_fit.idata.posterior["mu"] * 2
        with pytest.raises(UnknownParameterError):
            extract(mu_sigma_fit, "late")

    def test_unknown_parameter_is_key_error(self, mu_sigma_fit):
        with pytest.raises(KeyError):
            extract(mu_sigma_fit, "nope")

    def test_read_only(self, mu_sigma_fit):
        table = extract(mu_sigma_fit, "mu")
        with pytest.raises(ValueError):
            table["mu"][0] = 1.0


class TestExtractChains:

    def test_keeps_chain_axis(self, mu_sigma_fit):
        arr = extract_chains(mu_sigma_fit, "pred")
        assert arr.shape == (2, 50, 4)

    def test_unknown(self, mu_sigma_fit):
        with pytest.raises(UnknownParameterError):
            extract_chains(mu_sigma_fit, "gamma")


class TestDrawTable:

    def test_mismatched_draw_counts(self):
        with pytest.raises(ValueError, match="disagree"):
            DrawTable({"a": np.zeros(10), "b": np.zeros(11)})

    def test_empty(self):
        table = DrawTable({})
        assert len(table) == 0
        assert table.n_draws == 0
