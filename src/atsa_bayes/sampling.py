# ---------------------------------------------------------------------------
# atsa_bayes.sampling - PyMC fitting engine
# ---------------------------------------------------------------------------
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import time
from contextlib import ExitStack
from dataclasses import dataclass, field

import arviz as az
import numpy as np
import pymc as pm

from .errors import FittingError, FittingTimeout
from .model import ModelName, get_template
from .request import ModelRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FittedModel:
    """Read-only handle on one fit.

    ``monitored`` is frozen when the fit completes; the posterior layer
    validates parameter names against it rather than against whatever the
    ``InferenceData`` happens to contain later.
    """

    idata: az.InferenceData
    model_name: ModelName
    request: ModelRequest
    monitored: frozenset[str] = field(default_factory=frozenset)
    sampling_time: float = 0.0

    @classmethod
    def from_idata(
        cls,
        idata: az.InferenceData,
        model_name: ModelName,
        request: ModelRequest,
        sampling_time: float = 0.0,
    ) -> FittedModel:
        monitored = frozenset(str(v) for v in idata.posterior.data_vars)
        return cls(idata, model_name, request, monitored, sampling_time)

    def monitored_parameters(self) -> frozenset[str]:
        return self.monitored

    def get_draws(self, name: str) -> np.ndarray:
        """Raw draws with shape ``(chain, draw, *param_shape)``."""
        return self.idata.posterior[name].values

    @property
    def n_chains(self) -> int:
        return int(self.idata.posterior.sizes["chain"])

    @property
    def n_draws(self) -> int:
        """Draws per chain after thinning."""
        return int(self.idata.posterior.sizes["draw"])

    def __repr__(self) -> str:
        return (
            f"FittedModel({self.model_name.value}, chains={self.n_chains}, "
            f"draws={self.n_draws}, time={self.sampling_time:.1f}s)"
        )


class PyMCEngine:
    """Fit model templates with PyMC NUTS inside a managed scope.

    Fits requested with an explicit ``random_seed`` are reproducible, so
    they are written to a netCDF cache and reused when the same request is
    fit again.  Without ``cache_dir`` the cache is a scratch directory that
    lives exactly as long as the ``with`` block.

    Usage::

        with PyMCEngine() as engine:
            fit = engine.fit(request, "regression")
    """

    def __init__(
        self,
        cache_dir: str | os.PathLike | None = None,
        progressbar: bool = False,
    ) -> None:
        self.cache_dir = None if cache_dir is None else str(cache_dir)
        self.progressbar = progressbar
        self._stack: ExitStack | None = None
        self._scratch: str | None = None

    def __enter__(self) -> PyMCEngine:
        self._stack = ExitStack()
        if self.cache_dir is None:
            tmp = self._stack.enter_context(tempfile.TemporaryDirectory(prefix="atsa_bayes_"))
            self._scratch = tmp
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the scratch directory, if any."""
        if self._stack is not None:
            self._stack.close()
        self._stack = None
        self._scratch = None

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def fit(self, request: ModelRequest, model_name: str | ModelName) -> FittedModel:
        """Validate, build, sample and thin.

        Raises
        ------
        UnknownModelError
            *model_name* is not a known template.
        ConfigurationError
            *request* violates the template's constraints.
        FittingError
            The model failed to build or sample.
        FittingTimeout
            The sampler timed out.
        """
        template = get_template(model_name)
        template.validate(request)

        cache_path = self._cache_path(request, template.name)
        if cache_path is not None and os.path.exists(cache_path):
            logger.info(f"Loading cached {template.name.value} fit from {cache_path}")
            # eager: the scratch file is deleted when the engine scope exits
            with az.rc_context({"data.load": "eager"}):
                idata = az.from_netcdf(cache_path)
            return FittedModel.from_idata(idata, template.name, request)

        try:
            model = template.build(request)
        except Exception as e:
            raise FittingError(f"Failed to build {template.name.value}: {e}") from e

        mcmc = request.mcmc
        logger.info(
            f"Sampling {template.name.value}: {mcmc.n_chain} chains x {mcmc.draws} draws "
            f"({mcmc.n_burn} warm-up, thin {mcmc.n_thin})"
        )
        start_time = time.time()
        try:
            with model:
                idata = pm.sample(
                    draws=mcmc.draws,
                    tune=mcmc.n_burn,
                    chains=mcmc.n_chain,
                    cores=mcmc.cores,
                    random_seed=mcmc.random_seed,
                    target_accept=mcmc.target_accept,
                    nuts_sampler=mcmc.nuts_sampler,
                    progressbar=self.progressbar,
                    idata_kwargs={"log_likelihood": True},
                )
        except TimeoutError as e:
            raise FittingTimeout(f"Sampling {template.name.value} timed out: {e}") from e
        except Exception as e:
            raise FittingError(f"Sampling {template.name.value} failed: {e}") from e
        sampling_time = time.time() - start_time

        if mcmc.n_thin > 1:
            idata = idata.sel(draw=slice(None, None, mcmc.n_thin))

        self._warn_divergences(idata, template.name)

        if cache_path is not None:
            idata.to_netcdf(cache_path)

        logger.info(f"Sampling complete ({template.name.value}, {sampling_time:.1f}s)")
        return FittedModel.from_idata(idata, template.name, request, sampling_time)

    @staticmethod
    def _warn_divergences(idata: az.InferenceData, name: ModelName) -> None:
        if not hasattr(idata, "sample_stats") or "diverging" not in idata.sample_stats:
            return
        n_div = int(idata.sample_stats.diverging.sum().item())
        if n_div > 0:
            n_total = idata.posterior.sizes["chain"] * idata.posterior.sizes["draw"]
            logger.warning(
                f"{name.value}: {n_div} divergent transitions out of {n_total} kept draws"
            )

    # ------------------------------------------------------------------
    # Internal: caching
    # ------------------------------------------------------------------

    def _cache_root(self) -> str | None:
        return self.cache_dir if self.cache_dir is not None else self._scratch

    def _cache_path(self, request: ModelRequest, name: ModelName) -> str | None:
        """Cache file for a seeded fit; ``None`` when the fit is not cacheable."""
        root = self._cache_root()
        if root is None or request.mcmc.random_seed is None:
            return None
        os.makedirs(root, exist_ok=True)
        return os.path.join(root, f"{name.value}_{request_key(request)}.nc")


def request_key(request: ModelRequest) -> str:
    """Stable digest of everything that determines a seeded fit."""
    h = hashlib.sha256()
    h.update(np.ascontiguousarray(request.y).tobytes())
    h.update(repr(request.y.shape).encode())
    if request.x is not None:
        h.update(np.ascontiguousarray(request.x).tobytes())
        h.update(repr(request.x.shape).encode())
    settings = (
        request.P,
        request.est_drift,
        request.num_trends,
        request.process_noise,
        request.observation_noise,
        request.mcmc,
    )
    h.update(repr(settings).encode())
    return h.hexdigest()[:16]


def fit_model(request: ModelRequest, model_name: str | ModelName) -> FittedModel:
    """Fit once in a throwaway engine scope."""
    with PyMCEngine() as engine:
        return engine.fit(request, model_name)
