# ---------------------------------------------------------------------------
# atsa_bayes.summary - Pointwise credible intervals
# ---------------------------------------------------------------------------
"""Reduce posterior draws to (lower, mean, upper) bands.

Bands are **pointwise**: each position's quantiles are computed on its own
marginal draws.  A 95% pointwise band does not contain 95% of whole
posterior trajectories; the simultaneous coverage of the band is lower, so
it understates joint uncertainty across time steps.

Quantiles use linear interpolation between order statistics (numpy's
``"linear"`` method, Hyndman & Fan type 7, R's default): with ``n`` sorted
finite draws ``x_(0) .. x_(n-1)`` and ``h = (n - 1) p``, the quantile is
``x_(floor h) + (h - floor h) (x_(floor h + 1) - x_(floor h))``.  For draws
``[1, 2, 3, 4, 5]`` that gives 1.1 at ``p = 0.025`` and 4.9 at
``p = 0.975``.  Non-finite draws are ignored.

The reported mean is clipped into ``[lower, upper]``.  Rounding can push the
arithmetic mean of a constant position just past its quantiles, and for a
strongly skewed marginal the mean can lie outside a narrow band; clipping
keeps ``lower <= mean <= upper`` at every position with finite draws.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import numpy as np
import polars as pl

from .config import DEFAULT_QUANTILES, QUANTILE_METHOD
from .errors import InvalidQuantileError, UnknownParameterError


@dataclass(frozen=True, eq=False)
class IntervalSummary:
    """Pointwise band; arrays share the shape of a single draw."""

    lower: np.ndarray
    mean: np.ndarray
    upper: np.ndarray
    lower_prob: float = DEFAULT_QUANTILES[0]
    upper_prob: float = DEFAULT_QUANTILES[1]

    @property
    def shape(self) -> tuple[int, ...]:
        return self.mean.shape

    def to_frame(self) -> pl.DataFrame:
        """Long table with one row per (flattened) position."""
        return pl.DataFrame(
            {
                "position": np.arange(self.mean.size),
                "lower": self.lower.ravel(),
                "mean": self.mean.ravel(),
                "upper": self.upper.ravel(),
            }
        )


def _check_probs(probs: Iterable[float]) -> list[float]:
    probs = [float(p) for p in probs]
    for p in probs:
        if not (0.0 <= p <= 1.0):
            raise InvalidQuantileError(f"Quantile probabilities must lie in [0, 1]. Got {p}")
    return probs


def _finite(draws) -> np.ndarray:
    arr = np.asarray(draws, dtype=float)
    if arr.ndim == 0 or arr.shape[0] == 0:
        raise ValueError("draws must have at least one draw along axis 0")
    return np.where(np.isfinite(arr), arr, np.nan)


def quantiles(draws, probs: Iterable[float] = (0.025, 0.5, 0.975)) -> np.ndarray:
    """Quantiles across the draws axis, stacked on a new leading axis.

    ``quantiles(beta, (0.025, 0.5, 0.975))`` is the equivalent of R's
    ``quantile(beta, c(0.025, 0.5, 0.975))`` for a scalar parameter.
    """
    probs = _check_probs(probs)
    arr = _finite(draws)
    with warnings.catch_warnings():
        # all-NaN positions yield NaN
        warnings.simplefilter("ignore", RuntimeWarning)
        return np.nanquantile(arr, probs, axis=0, method=QUANTILE_METHOD)


def credible_interval(
    draws,
    lower: float = DEFAULT_QUANTILES[0],
    upper: float = DEFAULT_QUANTILES[1],
) -> IntervalSummary:
    """Pointwise (lower quantile, mean, upper quantile) across axis 0.

    The mean is clipped into the band, see the module docstring.

    Parameters
    ----------
    draws : array-like
        ``(n_draws,)`` for a scalar parameter or ``(n_draws, *shape)``
        for vector / matrix parameters (e.g. per-timestep predictions).
    lower, upper : float
        Quantile probabilities, ``0 <= lower < upper <= 1``.

    Raises
    ------
    InvalidQuantileError
        Probabilities outside ``[0, 1]`` or ``lower >= upper``.
    """
    lower, upper = _check_probs((lower, upper))
    if lower >= upper:
        raise InvalidQuantileError(
            f"lower quantile must be below upper. Got lower={lower}, upper={upper}"
        )
    arr = _finite(draws)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        lo, hi = np.nanquantile(arr, [lower, upper], axis=0, method=QUANTILE_METHOD)
        mean = np.clip(np.nanmean(arr, axis=0), lo, hi)
    return IntervalSummary(
        lower=np.asarray(lo),
        mean=np.asarray(mean),
        upper=np.asarray(hi),
        lower_prob=lower,
        upper_prob=upper,
    )


def summarize(
    table: Mapping[str, np.ndarray],
    var_names: Iterable[str] | None = None,
    lower: float = DEFAULT_QUANTILES[0],
    upper: float = DEFAULT_QUANTILES[1],
) -> dict[str, IntervalSummary]:
    """:func:`credible_interval` for several entries of a draw table.

    Raises
    ------
    UnknownParameterError
        A name in *var_names* is not in *table*.
    """
    if isinstance(var_names, str):
        var_names = [var_names]
    names = list(table) if var_names is None else list(var_names)
    unknown = set(names) - set(table)
    if unknown:
        raise UnknownParameterError(unknown, table)
    return {name: credible_interval(table[name], lower, upper) for name in names}
