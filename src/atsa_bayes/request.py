# ---------------------------------------------------------------------------
# atsa_bayes.request - Model request builder
# ---------------------------------------------------------------------------
"""Package observations, covariates and settings into a validated request.

The request is the Python counterpart of the named data list handed to a
Stan program: observations ``y`` and their length ``N``, an optional
covariate matrix, an autoregressive order ``P`` and a drift flag, plus the
MCMC settings.  Validation happens here so that no malformed request ever
reaches the sampler.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .config import DEFAULT_MCMC, McmcConfig
from .errors import ConfigurationError


@dataclass(frozen=True, eq=False)
class ModelRequest:
    """Validated inputs for one model fit.

    Parameters
    ----------
    y : np.ndarray
        Observations, ``NaN`` marking missing values.  Shape ``(N,)`` or
        ``(n_series, N)`` for dynamic factor analysis.
    x : np.ndarray or None
        Covariate matrix, shape ``(N, K)``.
    P : int
        Autoregressive order.
    est_drift : bool
        Estimate a drift / intercept term in RW, AR and state-space models.
    num_trends : int
        Number of latent trends (DFA only).
    process_noise, observation_noise : float or None
        Fixed noise scales for state-space models; ``None`` estimates them.
    mcmc : McmcConfig
        Sampler settings.
    """

    y: np.ndarray
    x: np.ndarray | None = None
    P: int = 0
    est_drift: bool = False
    num_trends: int = 1
    process_noise: float | None = None
    observation_noise: float | None = None
    mcmc: McmcConfig = field(default_factory=lambda: DEFAULT_MCMC)

    @property
    def N(self) -> int:
        """Number of time steps."""
        return int(self.y.shape[-1])

    @property
    def n_series(self) -> int:
        return 1 if self.y.ndim == 1 else int(self.y.shape[0])

    @property
    def K(self) -> int:
        """Number of covariate columns (0 without covariates)."""
        return 0 if self.x is None else int(self.x.shape[1])

    @property
    def has_missing(self) -> bool:
        return bool(np.isnan(self.y).any())

    def observed_index(self) -> np.ndarray:
        """Positions of finite observations (1-D requests)."""
        return np.where(np.isfinite(self.y))[0]

    def as_data(self) -> dict:
        """Named mapping in the layout a Stan-style data block expects."""
        data = {
            "y": self.y,
            "N": self.N,
            "P": self.P,
            "est_drift": int(self.est_drift),
            "n_pos": int(np.isfinite(self.y).sum()),
        }
        if self.x is not None:
            data["x"] = self.x
            data["K"] = self.K
        if self.y.ndim == 2:
            data["n_series"] = self.n_series
            data["num_trends"] = self.num_trends
        return data


def _as_float_array(values, name: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be numeric: {e}") from e
    return arr.copy()


def build_request(
    y,
    x=None,
    *,
    est_drift: bool = False,
    P: int = 0,
    num_trends: int = 1,
    process_noise: float | None = None,
    observation_noise: float | None = None,
    mcmc: McmcConfig | None = None,
) -> ModelRequest:
    """Validate inputs and assemble a :class:`ModelRequest`.

    Parameters
    ----------
    y : array-like
        Observation sequence; ``None`` / ``NaN`` entries are missing.
    x : array-like, optional
        Covariates, 1-D (one column) or ``(N, K)``.
    est_drift, P, num_trends, process_noise, observation_noise
        See :class:`ModelRequest`.
    mcmc : McmcConfig, optional
        Defaults to :data:`atsa_bayes.config.DEFAULT_MCMC`.

    Raises
    ------
    ConfigurationError
        Covariate length differs from the observation length, ``P < 0``,
        ``num_trends < 1``, empty observations, non-positive fixed noise,
        or invalid MCMC settings.
    """
    if mcmc is None:
        mcmc = DEFAULT_MCMC
    if not isinstance(mcmc, McmcConfig):
        raise ConfigurationError(f"mcmc must be a McmcConfig. Got {type(mcmc).__name__}")

    y_arr = _as_float_array(y, "y")
    if y_arr.ndim not in (1, 2):
        raise ConfigurationError(f"y must be 1-D or 2-D. Got shape {y_arr.shape}")
    if y_arr.shape[-1] < 1:
        raise ConfigurationError("y must contain at least one time step")
    n_time = y_arr.shape[-1]

    x_arr = None
    if x is not None:
        x_arr = _as_float_array(x, "x")
        if x_arr.ndim == 1:
            x_arr = x_arr[:, None]
        if x_arr.ndim != 2:
            raise ConfigurationError(f"x must be 1-D or 2-D. Got shape {x_arr.shape}")
        if x_arr.shape[0] != n_time:
            raise ConfigurationError(
                f"x has {x_arr.shape[0]} rows but y has {n_time} time steps"
            )
        if not np.all(np.isfinite(x_arr)):
            raise ConfigurationError("x must not contain missing values")

    if int(P) != P or P < 0:
        raise ConfigurationError(f"P must be a non-negative integer. Got {P}")
    if int(num_trends) != num_trends or num_trends < 1:
        raise ConfigurationError(f"num_trends must be a positive integer. Got {num_trends}")
    for label, value in (("process_noise", process_noise), ("observation_noise", observation_noise)):
        if value is not None and not value > 0:
            raise ConfigurationError(f"{label} must be positive when fixed. Got {value}")

    y_arr.setflags(write=False)
    if x_arr is not None:
        x_arr.setflags(write=False)

    return ModelRequest(
        y=y_arr,
        x=x_arr,
        P=int(P),
        est_drift=bool(est_drift),
        num_trends=int(num_trends),
        process_noise=process_noise,
        observation_noise=observation_noise,
        mcmc=mcmc,
    )
