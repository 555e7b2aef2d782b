# ---------------------------------------------------------------------------
# atsa_bayes - Bayesian time-series lab models on PyMC
# ---------------------------------------------------------------------------
"""Regression, AR, random-walk, state-space and DFA templates fit with PyMC,
with helpers to extract posterior draws, summarise pointwise credible bands
and pad series for forecasting."""

from .config import DEFAULT_MCMC, LIGHT_MCMC, OUTPUT_DIR, McmcConfig
from .errors import (
    AtsaError,
    ConfigurationError,
    FittingError,
    FittingTimeout,
    InvalidHorizonError,
    InvalidQuantileError,
    UnknownModelError,
    UnknownParameterError,
)
from .forecast import extend_for_forecast
from .model import MODEL_TEMPLATES, ModelName, build_model, get_template
from .posterior import DrawTable, PosteriorHandle, extract, extract_chains
from .request import ModelRequest, build_request
from .rotation import rotate_trends, varimax
from .sampling import FittedModel, PyMCEngine, fit_model
from .summary import IntervalSummary, credible_interval, quantiles, summarize

__all__ = [
    "DEFAULT_MCMC",
    "LIGHT_MCMC",
    "OUTPUT_DIR",
    "McmcConfig",
    # Errors
    "AtsaError",
    "ConfigurationError",
    "FittingError",
    "FittingTimeout",
    "InvalidHorizonError",
    "InvalidQuantileError",
    "UnknownModelError",
    "UnknownParameterError",
    # Requests and models
    "ModelRequest",
    "build_request",
    "ModelName",
    "MODEL_TEMPLATES",
    "build_model",
    "get_template",
    # Fitting
    "FittedModel",
    "PyMCEngine",
    "fit_model",
    # Posterior
    "DrawTable",
    "PosteriorHandle",
    "extract",
    "extract_chains",
    "IntervalSummary",
    "credible_interval",
    "quantiles",
    "summarize",
    "extend_for_forecast",
    "rotate_trends",
    "varimax",
]
