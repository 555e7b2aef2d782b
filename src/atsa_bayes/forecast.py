# ---------------------------------------------------------------------------
# atsa_bayes.forecast - Pad observations with missing values for forecasting
# ---------------------------------------------------------------------------
"""Forecasting is expressed by appending ``NaN`` markers to the series and
refitting: templates that drop missing observations from the likelihood
(regression, state-space, DFA) then report the posterior of ``pred`` at the
padded positions, which is the forecast distribution.
"""

from __future__ import annotations

import numpy as np

from .errors import InvalidHorizonError


def _check_horizon(horizon) -> int:
    try:
        valid = int(horizon) == horizon and horizon >= 0
    except (TypeError, ValueError, OverflowError):
        valid = False
    if not valid:
        raise InvalidHorizonError(f"horizon must be a non-negative integer. Got {horizon!r}")
    return int(horizon)


def extend_for_forecast(y, horizon: int) -> tuple[np.ndarray, int]:
    """Append *horizon* missing markers along the time (last) axis.

    Parameters
    ----------
    y : array-like
        Observation sequence ``(N,)`` or series matrix ``(n_series, N)``.
    horizon : int
        Number of future time steps, ``>= 0``.

    Returns
    -------
    y_ext : np.ndarray
        New float array of length ``N + horizon`` along the time axis; the
        input is never modified.
    n_ext : int
        ``N + horizon``, the ``N`` of the follow-up request.

    Raises
    ------
    InvalidHorizonError
        If *horizon* is negative or not an integer.
    """
    horizon = _check_horizon(horizon)

    arr = np.asarray(y, dtype=float)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    pad_shape = arr.shape[:-1] + (horizon,)
    y_ext = np.concatenate([arr, np.full(pad_shape, np.nan)], axis=-1)
    return y_ext, int(y_ext.shape[-1])


def forecast_positions(n_obs: int, horizon: int) -> np.ndarray:
    """Indices of the padded (forecast) positions in an extended series."""
    return np.arange(n_obs, n_obs + _check_horizon(horizon))
