# ---------------------------------------------------------------------------
# atsa_bayes.rotation - Varimax rotation of DFA loadings and trends
# ---------------------------------------------------------------------------
"""DFA loadings are only identified up to an orthogonal rotation.  Rotating
each posterior draw of ``Z`` to its varimax solution ``Z H`` (and the
trends by ``H^T``) gives trends that are easier to interpret and compare
across draws."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidQuantileError
from .posterior import PosteriorHandle, extract
from .summary import credible_interval


def varimax(
    loadings: np.ndarray,
    normalize: bool = True,
    eps: float = 1e-5,
    max_iter: int = 1000,
) -> tuple[np.ndarray, np.ndarray]:
    """Varimax rotation (Kaiser 1958), following R's ``stats::varimax``.

    Parameters
    ----------
    loadings : np.ndarray
        Loading matrix, shape ``(n_series, n_factors)``.
    normalize : bool
        Apply Kaiser row normalisation before rotating.
    eps : float
        Relative convergence tolerance on the criterion.

    Returns
    -------
    rotated : np.ndarray
        ``loadings @ rotmat``.
    rotmat : np.ndarray
        Orthogonal rotation matrix, shape ``(n_factors, n_factors)``.
    """
    x = np.asarray(loadings, dtype=float)
    p, nc = x.shape
    if nc < 2:
        return x.copy(), np.eye(nc)

    if normalize:
        sc = np.sqrt(np.sum(x**2, axis=1))
        sc = np.where(sc > 0, sc, 1.0)
        x = x / sc[:, None]

    rotmat = np.eye(nc)
    d = 0.0
    for _ in range(max_iter):
        z = x @ rotmat
        B = x.T @ (z**3 - z @ np.diag(np.sum(z**2, axis=0)) / p)
        u, s, vt = np.linalg.svd(B)
        rotmat = u @ vt
        d_past = d
        d = float(np.sum(s))
        if d < d_past * (1 + eps):
            break

    rotated = np.asarray(loadings, dtype=float) @ rotmat
    return rotated, rotmat


@dataclass(frozen=True, eq=False)
class RotatedTrends:
    """Per-draw rotated loadings / trends and their pointwise summaries."""

    Z_rot: np.ndarray         # (draws, n_series, n_trends)
    trends: np.ndarray        # (draws, n_trends, T)
    Z_rot_mean: np.ndarray
    trends_mean: np.ndarray
    trends_lower: np.ndarray
    trends_upper: np.ndarray


def rotate_trends(handle: PosteriorHandle, conf_level: float = 0.95) -> RotatedTrends:
    """Varimax-rotate every draw of a DFA fit.

    Parameters
    ----------
    handle : PosteriorHandle
        Fit of the ``dynamic_factor_analysis`` template (monitors ``Z``
        and ``x``).
    conf_level : float
        Width of the pointwise band on the rotated trends.
    """
    if not (0.0 < conf_level < 1.0):
        raise InvalidQuantileError(f"conf_level must be in (0, 1). Got {conf_level}")

    table = extract(handle, ["Z", "x"])
    Z, x = table["Z"], table["x"]
    n_draws = table.n_draws

    Z_rot = np.empty_like(Z)
    trends = np.empty_like(x)
    for i in range(n_draws):
        Z_rot[i], H = varimax(Z[i])
        # H is orthogonal, so its inverse is its transpose
        trends[i] = H.T @ x[i]

    tail = (1.0 - conf_level) / 2.0
    band = credible_interval(trends, tail, 1.0 - tail)
    return RotatedTrends(
        Z_rot=Z_rot,
        trends=trends,
        Z_rot_mean=Z_rot.mean(axis=0),
        trends_mean=band.mean,
        trends_lower=band.lower,
        trends_upper=band.upper,
    )
