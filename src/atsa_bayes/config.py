# ---------------------------------------------------------------------------
# atsa_bayes.config - MCMC configuration and project constants
# ---------------------------------------------------------------------------
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

from .errors import ConfigurationError

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root
OUTPUT_DIR = BASE_DIR / "output"
CACHE_DIR = BASE_DIR / ".cache" / "rdatasets"

# ---------------------------------------------------------------------------
# Summary constants
# ---------------------------------------------------------------------------

# Pointwise 95% credible band
DEFAULT_QUANTILES = (0.025, 0.975)

# numpy quantile method; "linear" is R's type 7
QUANTILE_METHOD = "linear"

# Convergence thresholds used by the diagnostics report
RHAT_MAX = 1.01
ESS_BULK_MIN = 400

# Band / line colours for plots
BAND_COLOR = "steelblue"
OBS_COLOR = "darkorange"
FORECAST_COLOR = "coral"


# ---------------------------------------------------------------------------
# MCMC specification
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class McmcConfig:
    """Sampler settings for one fit.

    Mirrors the ``mcmc_list`` of the lab chapter: total iterations per
    chain, burn-in, chain count and thinning interval.

    Parameters
    ----------
    n_mcmc : int
        Total iterations per chain, burn-in included.
    n_burn : int
        Warm-up iterations per chain, discarded.  Must be ``< n_mcmc``.
    n_chain : int
        Number of chains.
    n_thin : int
        Keep every ``n_thin``-th post-warm-up draw.
    random_seed : int, optional
        Seed forwarded to the sampler.  Fits are only cached when set.
    target_accept : float
        NUTS target acceptance rate.
    cores : int, optional
        Worker processes for the chains.  ``None`` lets PyMC decide.
    nuts_sampler : ``'pymc'`` | ``'nutpie'``
        NUTS implementation.
    """

    n_mcmc: int = 1000
    n_burn: int = 500
    n_chain: int = 3
    n_thin: int = 1
    random_seed: int | None = None
    target_accept: float = 0.9
    cores: int | None = None
    nuts_sampler: Literal["pymc", "nutpie"] = "pymc"

    def __post_init__(self) -> None:
        if self.n_chain < 1:
            raise ConfigurationError(f"n_chain must be >= 1. Got {self.n_chain}")
        if self.n_thin < 1:
            raise ConfigurationError(f"n_thin must be >= 1. Got {self.n_thin}")
        if self.n_burn < 0:
            raise ConfigurationError(f"n_burn must be >= 0. Got {self.n_burn}")
        if self.n_burn >= self.n_mcmc:
            raise ConfigurationError(
                f"n_burn must be < n_mcmc. Got n_burn={self.n_burn}, n_mcmc={self.n_mcmc}"
            )
        if not (0.0 < self.target_accept < 1.0):
            raise ConfigurationError(
                f"target_accept must be in (0, 1). Got {self.target_accept}"
            )
        if self.nuts_sampler not in ("pymc", "nutpie"):
            raise ConfigurationError(f"Unknown nuts_sampler {self.nuts_sampler!r}")

    @property
    def draws(self) -> int:
        """Post-warm-up iterations per chain, before thinning."""
        return self.n_mcmc - self.n_burn

    @property
    def kept_draws(self) -> int:
        """Draws per chain after thinning."""
        return math.ceil(self.draws / self.n_thin)

    def with_seed(self, seed: int | None) -> McmcConfig:
        return replace(self, random_seed=seed)


# Lab default: 3 chains x 500 kept draws
DEFAULT_MCMC = McmcConfig()

# Lighter configuration for loops over many candidate models
LIGHT_MCMC = McmcConfig(n_mcmc=600, n_burn=300, n_chain=2)
