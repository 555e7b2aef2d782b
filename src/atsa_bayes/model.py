# ---------------------------------------------------------------------------
# atsa_bayes.model - PyMC model templates
# ---------------------------------------------------------------------------
"""Closed set of named time-series model templates.

Every template names its likelihood ``y`` and exposes a ``pred``
deterministic holding the per-timestep fitted (or, at missing positions,
extrapolated) mean, so the posterior layer can treat all of them alike.

Templates that condition on lagged observations (regression with AR(1)
errors, random walk, AR(p)) need a complete series.  Regression,
state-space and DFA templates drop missing observations from the
likelihood, which is what makes forecasting by padding the series with
``NaN`` work.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Literal

import numpy as np
import pymc as pm
import pytensor
import pytensor.tensor as pt

from .errors import ConfigurationError, UnknownModelError
from .request import ModelRequest

# Weakly-informative prior scales
BETA_SCALE = 100.0
DRIFT_SCALE = 10.0
NOISE_NU = 3.0
NOISE_SCALE = 2.0
STATE_INIT_SCALE = 10.0


class ModelName(str, Enum):
    """Identifiers of the supported model templates."""

    REGRESSION = "regression"
    REGRESSION_COR = "regression_with_autocorrelated_errors"
    RANDOM_WALK = "random_walk"
    AR = "autoregressive_order_p"
    SS_AR = "state_space_autoregressive"
    SS_RW = "state_space_random_walk"
    DFA = "dynamic_factor_analysis"

    @classmethod
    def parse(cls, name: str | ModelName) -> ModelName:
        """Resolve an identifier or one of the short lab aliases."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        if key in MODEL_ALIASES:
            return MODEL_ALIASES[key]
        known = sorted([m.value for m in cls] + list(MODEL_ALIASES))
        raise UnknownModelError(f"Unknown model {name!r}. Known: {known}")


MODEL_ALIASES: dict[str, ModelName] = {
    "lm": ModelName.REGRESSION,
    "regression_cor": ModelName.REGRESSION_COR,
    "rw": ModelName.RANDOM_WALK,
    "ar": ModelName.AR,
    "ss_ar": ModelName.SS_AR,
    "ss_rw": ModelName.SS_RW,
    "dfa": ModelName.DFA,
}


# =========================================================================
# Shared pieces
# =========================================================================


def _design_matrix(request: ModelRequest) -> np.ndarray:
    if request.x is None:
        return np.ones((request.N, 1))
    return np.array(request.x)


def _noise(name: str, fixed: float | None = None, shape=None):
    """HalfStudentT noise scale, or a constant when fixed."""
    if fixed is not None:
        return pt.as_tensor_variable(np.float64(fixed))
    return pm.HalfStudentT(name, nu=NOISE_NU, sigma=NOISE_SCALE, shape=shape)


def _drift(request: ModelRequest):
    if request.est_drift:
        return pm.Normal("mu", mu=0.0, sigma=DRIFT_SCALE)
    return pt.as_tensor_variable(np.float64(0.0))


# =========================================================================
# Regression
# =========================================================================


def build_regression(request: ModelRequest) -> pm.Model:
    """``y_t ~ N(x_t beta, sigma)``; missing ``y_t`` are predicted, not fit."""
    x = _design_matrix(request)
    y = np.array(request.y)
    obs = request.observed_index()

    with pm.Model() as model:
        beta = pm.Normal("beta", mu=0.0, sigma=BETA_SCALE, shape=x.shape[1])
        sigma = _noise("sigma")
        pred = pm.Deterministic("pred", pt.dot(x, beta))
        pm.Normal("y", mu=pred[obs], sigma=sigma, observed=y[obs])

    return model


def build_regression_cor(request: ModelRequest) -> pm.Model:
    """Regression whose residuals follow an AR(1) process.

    ``pred_t = x_t beta + phi (y_{t-1} - x_{t-1} beta)`` for ``t > 1``.
    """
    x = _design_matrix(request)
    y = np.array(request.y)

    with pm.Model() as model:
        beta = pm.Normal("beta", mu=0.0, sigma=BETA_SCALE, shape=x.shape[1])
        phi = pm.Uniform("phi", lower=-1.0, upper=1.0)
        sigma = _noise("sigma")

        mu = pt.dot(x, beta)
        resid = pt.as_tensor_variable(y) - mu
        pred = pt.concatenate([mu[:1], mu[1:] + phi * resid[:-1]])
        pm.Deterministic("pred", pred)
        pm.Normal("y", mu=pred, sigma=sigma, observed=y)

    return model


# =========================================================================
# Random walk and AR(p) on the observations
# =========================================================================


def build_random_walk(request: ModelRequest) -> pm.Model:
    """``y_t ~ N(y_{t-1} + mu, sigma)``, ``mu`` estimated only with drift."""
    y = np.array(request.y)

    with pm.Model() as model:
        mu = _drift(request)
        sigma = _noise("sigma")

        prev = pt.as_tensor_variable(y[:-1])
        pred = pt.concatenate([pt.as_tensor_variable(y[:1]), prev + mu])
        pm.Deterministic("pred", pred)
        pm.Normal("y", mu=pred[1:], sigma=sigma, observed=y[1:])

    return model


def _lag_matrix(y: np.ndarray, P: int) -> np.ndarray:
    """Column ``p`` holds ``y_{t-p-1}`` for ``t = P .. N-1``."""
    N = len(y)
    return np.column_stack([y[P - p - 1 : N - p - 1] for p in range(P)])


def build_ar(request: ModelRequest) -> pm.Model:
    """AR(P): ``y_t ~ N(mu + x_t beta + sum_p phi_p y_{t-p}, sigma)``.

    The first ``P`` observations are conditioned on.  ``mu`` is estimated
    only when ``est_drift`` is set; covariates supply a regression mean.
    """
    y = np.array(request.y)
    P = request.P
    N = request.N

    with pm.Model() as model:
        mu = _drift(request)
        sigma = _noise("sigma")

        tail = mu + pt.zeros(N - P)
        if request.x is not None:
            x = np.array(request.x)
            beta = pm.Normal("beta", mu=0.0, sigma=BETA_SCALE, shape=x.shape[1])
            tail = tail + pt.dot(x[P:], beta)
        if P > 0:
            phi = pm.Normal("phi", mu=0.0, sigma=1.0, shape=P)
            tail = tail + pt.dot(_lag_matrix(y, P), phi)

        pred = pt.concatenate([pt.as_tensor_variable(y[:P]), tail])
        pm.Deterministic("pred", pred)
        pm.Normal("y", mu=tail, sigma=sigma, observed=y[P:])

    return model


# =========================================================================
# State-space: latent AR(1) or random walk + observation noise
# =========================================================================


def build_state_space(
    request: ModelRequest,
    process: Literal["ar", "rw"] = "rw",
) -> pm.Model:
    """Latent process observed with noise.

    ``x_t = mu + phi x_{t-1} + sigma_process e_t`` with ``phi = 1`` for the
    random walk, and ``y_t ~ N(x_t, sigma_obs)`` at observed positions.
    ``process_noise`` / ``observation_noise`` on the request fix the
    corresponding scale instead of estimating it.
    """
    y = np.array(request.y)
    N = request.N
    obs = request.observed_index()

    with pm.Model() as model:
        x0 = pm.Normal("x0", mu=y[obs[0]], sigma=STATE_INIT_SCALE)
        mu = _drift(request)
        if process == "ar":
            phi = pm.Uniform("phi", lower=-1.0, upper=1.0)
        else:
            phi = pt.as_tensor_variable(np.float64(1.0))
        sigma_process = _noise("sigma_process", request.process_noise)
        sigma_obs = _noise("sigma_obs", request.observation_noise)

        if N > 1:
            eps = pm.Normal("eps", 0, 1, shape=N - 1)

            if process == "rw":
                x_rest = x0 + pt.cumsum(mu + sigma_process * eps)
            else:

                def ar1_step(e_t, x_prev, _mu, _phi, _sig):
                    return _mu + _phi * x_prev + _sig * e_t

                x_rest, _ = pytensor.scan(
                    fn=ar1_step,
                    sequences=[eps],
                    outputs_info=[x0],
                    non_sequences=[mu, phi, sigma_process],
                    strict=True,
                )
            states = pt.concatenate([x0.reshape((1,)), x_rest])
        else:
            states = x0.reshape((1,))

        pm.Deterministic("pred", states)
        pm.Normal("y", mu=states[obs], sigma=sigma_obs, observed=y[obs])

    return model


# =========================================================================
# Dynamic factor analysis
# =========================================================================


def build_dfa(request: ModelRequest) -> pm.Model:
    """``y = Z x + e`` with ``num_trends`` random-walk trends.

    ``Z`` is lower triangular with a positive diagonal so the loadings are
    identified up to rotation (see :mod:`atsa_bayes.rotation`).  Trend
    innovations have unit variance; each series gets its own observation
    noise.
    """
    y = np.array(request.y)
    n_series, T = y.shape
    K = request.num_trends

    rows_off, cols_off = np.tril_indices(n_series, k=-1, m=K)
    diag = np.arange(K)
    r_obs, c_obs = np.where(np.isfinite(y))

    with pm.Model() as model:
        Z = pt.zeros((n_series, K))
        if len(rows_off) > 0:
            z_off = pm.Normal("z_off", mu=0.0, sigma=1.0, shape=len(rows_off))
            Z = pt.set_subtensor(Z[rows_off, cols_off], z_off)
        z_diag = pm.HalfNormal("z_diag", sigma=1.0, shape=K)
        Z = pt.set_subtensor(Z[diag, diag], z_diag)
        pm.Deterministic("Z", Z)

        x_dev = pm.Normal("x_dev", mu=0.0, sigma=1.0, shape=(K, T))
        x = pm.Deterministic("x", pt.cumsum(x_dev, axis=1))

        pred = pm.Deterministic("pred", pt.dot(Z, x))
        sigma = _noise("sigma", shape=n_series)
        pm.Normal("y", mu=pred[r_obs, c_obs], sigma=sigma[r_obs], observed=y[r_obs, c_obs])

    return model


# =========================================================================
# Template registry
# =========================================================================


def _check_ar(request: ModelRequest) -> None:
    if request.N <= request.P:
        raise ConfigurationError(
            f"AR({request.P}) needs more than {request.P} observations. Got N={request.N}"
        )


def _check_dfa(request: ModelRequest) -> None:
    if request.num_trends > request.n_series:
        raise ConfigurationError(
            f"num_trends ({request.num_trends}) exceeds the number of series "
            f"({request.n_series})"
        )


@dataclass(frozen=True)
class ModelTemplate:
    """A named model and the constraints its inputs must satisfy."""

    name: ModelName
    build: Callable[[ModelRequest], pm.Model]
    allows_missing: bool = False
    multivariate: bool = False
    min_length: int = 1
    check: Callable[[ModelRequest], None] | None = None

    def validate(self, request: ModelRequest) -> None:
        """Raise :class:`ConfigurationError` if *request* cannot be fit."""
        label = self.name.value
        if self.multivariate and request.y.ndim != 2:
            raise ConfigurationError(f"{label} needs y of shape (n_series, N)")
        if not self.multivariate and request.y.ndim != 1:
            raise ConfigurationError(f"{label} needs a 1-D observation sequence")
        if request.N < self.min_length:
            raise ConfigurationError(
                f"{label} needs at least {self.min_length} time steps. Got {request.N}"
            )
        if request.has_missing and not self.allows_missing:
            raise ConfigurationError(f"{label} does not accept missing observations")
        if not np.isfinite(request.y).any():
            raise ConfigurationError(f"{label} needs at least one observed value")
        if self.check is not None:
            self.check(request)


MODEL_TEMPLATES: dict[ModelName, ModelTemplate] = {
    ModelName.REGRESSION: ModelTemplate(
        ModelName.REGRESSION, build_regression, allows_missing=True,
    ),
    ModelName.REGRESSION_COR: ModelTemplate(
        ModelName.REGRESSION_COR, build_regression_cor,
    ),
    ModelName.RANDOM_WALK: ModelTemplate(
        ModelName.RANDOM_WALK, build_random_walk, min_length=2,
    ),
    ModelName.AR: ModelTemplate(
        ModelName.AR, build_ar, check=_check_ar,
    ),
    ModelName.SS_AR: ModelTemplate(
        ModelName.SS_AR, partial(build_state_space, process="ar"), allows_missing=True,
    ),
    ModelName.SS_RW: ModelTemplate(
        ModelName.SS_RW, partial(build_state_space, process="rw"), allows_missing=True,
    ),
    ModelName.DFA: ModelTemplate(
        ModelName.DFA, build_dfa, allows_missing=True, multivariate=True, check=_check_dfa,
    ),
}


def get_template(name: str | ModelName) -> ModelTemplate:
    """Look up a template; unknown identifiers raise :class:`UnknownModelError`."""
    return MODEL_TEMPLATES[ModelName.parse(name)]


def build_model(request: ModelRequest, model_name: str | ModelName) -> pm.Model:
    """Validate *request* against the template and build the PyMC model."""
    template = get_template(model_name)
    template.validate(request)
    return template.build(request)
