"""Tests for atsa_bayes.checks and atsa_bayes.diagnostics."""

import numpy as np
import polars as pl
import pytest

from atsa_bayes.checks import extract_log_lik, loo_table, looic, print_loo_table
from atsa_bayes.diagnostics import convergence_table, divergence_count, print_diagnostics

from conftest import make_fit


def _normal_fit(rng, center, scale=1.0, n_obs=12):
    """Fit whose pointwise log-lik scores fixed data under N(mu, scale)."""
    data = rng.normal(0.0, 1.0, size=n_obs)
    mu = rng.normal(center, 0.1, size=(2, 100))
    ll = -0.5 * ((data - mu[..., None]) / scale) ** 2 - np.log(scale) - 0.5 * np.log(2 * np.pi)
    return make_fit(
        {"mu": mu},
        y=data,
        log_likelihood={"y": ll},
        sample_stats={"diverging": np.zeros((2, 100), dtype=bool)},
    )


class TestLogLik:

    def test_shape(self, rng):
        ll = extract_log_lik(_normal_fit(rng, 0.0))
        assert ll.shape == (200, 12)

    def test_missing_group(self, mu_sigma_fit):
        with pytest.raises(ValueError, match="log-likelihood"):
            extract_log_lik(mu_sigma_fit)


class TestLoo:

    def test_looic_is_minus_twice_elpd(self, rng):
        fit = _normal_fit(rng, 0.0)
        value = looic(fit)
        assert np.isfinite(value)
        assert value > 0

    def test_table_sorted_best_first(self, rng):
        fits = {"near": _normal_fit(rng, 0.0), "far": _normal_fit(rng, 3.0)}
        table = loo_table(fits)
        assert isinstance(table, pl.DataFrame)
        assert table.columns == ["model", "LOOIC", "se", "p_loo", "n_bad_khat"]
        assert table["model"].to_list() == ["near", "far"]
        assert table["LOOIC"].is_sorted()

    def test_print(self, rng, capsys):
        print_loo_table(loo_table({"only": _normal_fit(rng, 0.0)}))
        out = capsys.readouterr().out
        assert "PSIS-LOO" in out
        assert "only" in out


class TestDiagnostics:

    def test_divergence_count(self):
        div = np.zeros((2, 10), dtype=bool)
        div[1, :4] = True
        fit = make_fit({"mu": np.zeros((2, 10))}, sample_stats={"diverging": div})
        assert divergence_count(fit) == 4

    def test_divergence_count_without_stats(self, mu_sigma_fit):
        assert divergence_count(mu_sigma_fit) == 0

    def test_convergence_table(self, mu_sigma_fit):
        table = convergence_table(mu_sigma_fit, ["mu", "sigma"])
        assert table["parameter"].to_list() == ["mu", "sigma"]
        assert {"mean", "r_hat", "ess_bulk"} <= set(table.columns)

    def test_print_diagnostics(self, mu_sigma_fit, capsys):
        print_diagnostics(mu_sigma_fit, "mu")
        out = capsys.readouterr().out
        assert "SAMPLING DIAGNOSTICS: regression" in out
        assert "Divergences: 0" in out
