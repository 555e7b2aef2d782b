"""Shared fixtures: synthetic fits built from plain arrays, no sampling."""

import arviz as az
import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

from atsa_bayes.model import ModelName
from atsa_bayes.request import build_request
from atsa_bayes.sampling import FittedModel


def make_fit(
    posterior: dict,
    model_name: str = "regression",
    y=None,
    log_likelihood: dict | None = None,
    sample_stats: dict | None = None,
) -> FittedModel:
    """Wrap ``(chain, draw, ...)`` arrays in a FittedModel."""
    idata = az.from_dict(
        posterior=posterior,
        log_likelihood=log_likelihood,
        sample_stats=sample_stats,
    )
    request = build_request(np.arange(5.0) if y is None else y)
    return FittedModel.from_idata(idata, ModelName.parse(model_name), request)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def mu_sigma_fit(rng):
    """2 chains x 50 draws of mu, sigma and a 4-step pred."""
    return make_fit(
        {
            "mu": rng.normal(0.0, 1.0, size=(2, 50)),
            "sigma": np.abs(rng.normal(1.0, 0.1, size=(2, 50))),
            "pred": rng.normal(0.0, 1.0, size=(2, 50, 4)),
        }
    )
