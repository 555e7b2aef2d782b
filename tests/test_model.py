"""Tests for atsa_bayes.model: template registry, validation and graphs."""

import numpy as np
import pytest

from atsa_bayes.config import McmcConfig
from atsa_bayes.errors import ConfigurationError, UnknownModelError
from atsa_bayes.model import (
    MODEL_ALIASES,
    MODEL_TEMPLATES,
    ModelName,
    build_model,
    get_template,
)
from atsa_bayes.request import build_request


def _finite_logp(model) -> bool:
    point = model.initial_point()
    return bool(np.isfinite(model.compile_logp()(point)))


def _at_initial_point(model, name):
    fn = model.compile_fn(model[name], inputs=model.value_vars, on_unused_input="ignore")
    return np.asarray(fn(model.initial_point()))


def _n_observed(model) -> int:
    return int(np.size(model.rvs_to_values[model["y"]].eval()))


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


class TestModelName:

    def test_every_name_has_a_template(self):
        assert set(MODEL_TEMPLATES) == set(ModelName)

    def test_parse_identifier(self):
        assert ModelName.parse("random_walk") is ModelName.RANDOM_WALK

    def test_parse_is_case_insensitive(self):
        assert ModelName.parse(" Regression ") is ModelName.REGRESSION

    @pytest.mark.parametrize("alias", sorted(MODEL_ALIASES))
    def test_parse_alias(self, alias):
        assert ModelName.parse(alias) is MODEL_ALIASES[alias]

    def test_parse_enum_passthrough(self):
        assert ModelName.parse(ModelName.DFA) is ModelName.DFA

    def test_unknown(self):
        with pytest.raises(UnknownModelError, match="garch"):
            ModelName.parse("garch")

    def test_get_template_unknown(self):
        with pytest.raises(UnknownModelError):
            get_template("marss")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidate:

    def test_missing_rejected_by_lagged_templates(self):
        req = build_request([1.0, np.nan, 3.0, 4.0], P=1)
        for name in ("regression_cor", "rw", "ar"):
            with pytest.raises(ConfigurationError, match="missing"):
                get_template(name).validate(req)

    def test_missing_accepted_by_regression_and_state_space(self):
        req = build_request([1.0, np.nan, 3.0, 4.0])
        for name in ("lm", "ss_ar", "ss_rw"):
            get_template(name).validate(req)

    def test_all_missing(self):
        req = build_request([np.nan, np.nan])
        with pytest.raises(ConfigurationError, match="observed"):
            get_template("ss_rw").validate(req)

    def test_random_walk_needs_two_points(self):
        with pytest.raises(ConfigurationError, match="at least 2"):
            get_template("rw").validate(build_request([1.0]))

    def test_ar_order_longer_than_series(self):
        with pytest.raises(ConfigurationError, match="AR\\(3\\)"):
            get_template("ar").validate(build_request([1.0, 2.0, 3.0], P=3))

    def test_univariate_template_rejects_matrix(self):
        req = build_request(np.zeros((2, 5)))
        with pytest.raises(ConfigurationError, match="1-D"):
            get_template("regression").validate(req)

    def test_dfa_needs_matrix(self):
        with pytest.raises(ConfigurationError, match="n_series"):
            get_template("dfa").validate(build_request(np.zeros(5)))

    def test_dfa_too_many_trends(self):
        req = build_request(np.zeros((2, 5)), num_trends=3)
        with pytest.raises(ConfigurationError, match="num_trends"):
            get_template("dfa").validate(req)

    def test_build_model_validates_first(self):
        with pytest.raises(ConfigurationError):
            build_model(build_request([1.0, np.nan]), "rw")


# ---------------------------------------------------------------------------
# Graphs
# ---------------------------------------------------------------------------


@pytest.fixture
def series(rng):
    return np.cumsum(rng.normal(size=20))


class TestBuildModel:

    def test_regression_intercept_only(self, series):
        model = build_model(build_request(series), "regression")
        assert {"beta", "sigma", "pred", "y"} <= set(model.named_vars)
        assert model.initial_point()["beta"].shape == (1,)
        assert _finite_logp(model)

    def test_regression_covariates_and_missing(self, rng, series):
        y = series.copy()
        y[[3, 7]] = np.nan
        x = np.column_stack([np.ones(20), rng.normal(size=20)])
        model = build_model(build_request(y, x), "regression")
        assert model.initial_point()["beta"].shape == (2,)
        # only observed points enter the likelihood
        assert _n_observed(model) == 18

    def test_regression_cor(self, series):
        model = build_model(build_request(series), "regression_with_autocorrelated_errors")
        assert "phi" in model.named_vars
        assert _finite_logp(model)

    def test_random_walk_without_drift(self, series):
        model = build_model(build_request(series), "random_walk")
        assert "mu" not in model.named_vars
        assert _n_observed(model) == 19

    def test_random_walk_with_drift(self, series):
        model = build_model(build_request(series, est_drift=True), "rw")
        assert "mu" in model.named_vars
        assert _finite_logp(model)

    def test_ar_order(self, series):
        model = build_model(build_request(series, P=2, est_drift=True), "ar")
        assert model.initial_point()["phi"].shape == (2,)
        assert _n_observed(model) == 18
        assert _finite_logp(model)

    def test_ar_with_covariate_column(self, series):
        req = build_request(series, np.ones(20), P=1)
        model = build_model(req, "ar")
        assert {"beta", "phi"} <= set(model.named_vars)

    @pytest.mark.parametrize("name", ["ss_ar", "ss_rw"])
    def test_state_space_forecast_padding(self, series, name):
        y = np.concatenate([series, np.full(5, np.nan)])
        model = build_model(build_request(y, est_drift=True), name)
        assert _n_observed(model) == 20
        pred = _at_initial_point(model, "pred")
        assert pred.shape == (25,)
        assert _finite_logp(model)

    def test_state_space_fixed_noise(self, series):
        req = build_request(series, process_noise=0.5, observation_noise=0.1)
        model = build_model(req, "ss_rw")
        assert "sigma_process" not in model.named_vars
        assert "sigma_obs" not in model.named_vars
        assert "phi" not in model.named_vars

    def test_dfa_loadings_lower_triangular(self, rng):
        y = rng.normal(size=(3, 15))
        y[0, 4] = np.nan
        model = build_model(build_request(y, num_trends=2), "dfa")
        assert model.initial_point()["z_off"].shape == (3,)
        assert _n_observed(model) == 44

        Z = _at_initial_point(model, "Z")
        assert Z.shape == (3, 2)
        assert Z[0, 1] == 0.0
        assert np.all(np.diag(Z) > 0)
        assert _finite_logp(model)

    def test_dfa_single_series_single_trend(self, rng):
        model = build_model(build_request(rng.normal(size=(1, 10))), "dfa")
        assert "z_off" not in model.named_vars
        assert {"Z", "x", "pred"} <= set(model.named_vars)


def test_request_mcmc_does_not_affect_graph(series):
    a = build_model(build_request(series), "regression")
    b = build_model(build_request(series, mcmc=McmcConfig(n_mcmc=10, n_burn=5)), "regression")
    assert set(a.named_vars) == set(b.named_vars)
