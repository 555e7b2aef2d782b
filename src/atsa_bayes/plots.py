# ---------------------------------------------------------------------------
# atsa_bayes.plots - Credible bands, draw traces, histograms, DFA trends
# ---------------------------------------------------------------------------
from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .config import BAND_COLOR, FORECAST_COLOR, OBS_COLOR, OUTPUT_DIR
from .rotation import RotatedTrends
from .summary import IntervalSummary


def _save(fig, path: Path | str | None, default_name: str) -> Path:
    out = Path(path) if path is not None else OUTPUT_DIR / default_name
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"Saved: {out}")
    return out


# =========================================================================
# Interval bands
# =========================================================================


def plot_interval(
    summary: IntervalSummary,
    observed: np.ndarray | None = None,
    forecast_start: int | None = None,
    title: str = "Predicted values",
    ylabel: str = "",
    path: Path | str | None = None,
) -> Path:
    """Posterior mean with its pointwise band, observed points on top.

    Positions from *forecast_start* on are drawn in the forecast colour.
    """
    mean = np.ravel(summary.mean)
    lo = np.ravel(summary.lower)
    hi = np.ravel(summary.upper)
    t = np.arange(1, len(mean) + 1)
    pct = int(round(100 * (summary.upper_prob - summary.lower_prob)))

    fig, ax = plt.subplots(figsize=(12, 5))
    fit_end = len(mean) if forecast_start is None else forecast_start
    ax.fill_between(t[:fit_end], lo[:fit_end], hi[:fit_end], alpha=0.25, color=BAND_COLOR,
                    label=f"{pct}% pointwise CI")
    ax.plot(t[:fit_end], mean[:fit_end], color=BAND_COLOR, lw=2, label="Posterior mean")

    if forecast_start is not None and forecast_start < len(mean):
        # start the forecast band at the last fitted point
        s = max(forecast_start - 1, 0)
        ax.fill_between(t[s:], lo[s:], hi[s:], alpha=0.3, color=FORECAST_COLOR)
        ax.plot(t[s:], mean[s:], color=FORECAST_COLOR, lw=2, ls="--", label="Forecast")
        ax.axvline(forecast_start + 0.5, color="gray", ls=":", lw=1, alpha=0.7)

    if observed is not None:
        obs = np.asarray(observed, dtype=float)
        m = np.isfinite(obs)
        ax.scatter(t[: len(obs)][m], obs[m], s=12, c=OBS_COLOR, zorder=5, label="Observed")

    ax.set_xlabel("Time")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.legend(fontsize=8, loc="upper left")
    return _save(fig, path, "interval.png")


# =========================================================================
# Draws
# =========================================================================


def plot_draws(draws: np.ndarray, label: str = "", path: Path | str | None = None) -> Path:
    """Draws in sampling order, one line per chain for ``(chain, draw)`` input.

    With little or no burn-in the start of each chain shows the sampler
    walking in from its initial value.
    """
    arr = np.asarray(draws, dtype=float)
    if arr.ndim == 1:
        arr = arr[None, :]

    fig, ax = plt.subplots(figsize=(12, 4))
    for c in range(arr.shape[0]):
        ax.plot(arr[c], lw=0.8, alpha=0.8, label=f"Chain {c + 1}")
    ax.set_xlabel("Iteration")
    ax.set_ylabel(label)
    ax.set_title(f"Posterior draws: {label}" if label else "Posterior draws")
    if arr.shape[0] > 1:
        ax.legend(fontsize=8)
    return _save(fig, path, f"draws_{label or 'param'}.png")


def plot_posterior_hist(
    draws: np.ndarray,
    label: str = "",
    bins: int = 40,
    path: Path | str | None = None,
) -> Path:
    """Histogram of a scalar parameter's draws."""
    fig, ax = plt.subplots(figsize=(7, 4.5))
    ax.hist(np.ravel(draws), bins=bins, color="grey", edgecolor="white")
    ax.set_xlabel(label)
    ax.set_ylabel("Count")
    return _save(fig, path, f"hist_{label or 'param'}.png")


# =========================================================================
# Series and DFA trends
# =========================================================================


def plot_series(
    y: np.ndarray,
    names: list[str] | None = None,
    n_cols: int = 2,
    path: Path | str | None = None,
) -> Path:
    """One panel per series of a ``(n_series, T)`` matrix."""
    y = np.atleast_2d(np.asarray(y, dtype=float))
    n_series = y.shape[0]
    n_rows = (n_series + n_cols - 1) // n_cols
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(12, 2.8 * n_rows), squeeze=False)
    axes_flat = axes.flatten()

    t = np.arange(1, y.shape[1] + 1)
    for i in range(n_series):
        ax = axes_flat[i]
        ax.plot(t, y[i], "o-", color="blue", ms=3, lw=1)
        ax.set_title(names[i] if names else f"Series {i + 1}")

    for idx in range(n_series, len(axes_flat)):
        axes_flat[idx].set_visible(False)

    return _save(fig, path, "series.png")


def plot_trends(rotated: RotatedTrends, path: Path | str | None = None) -> Path:
    """Rotated DFA trends: mean and pointwise band, one panel per trend."""
    n_trends, T = rotated.trends_mean.shape
    t = np.arange(1, T + 1)

    fig, axes = plt.subplots(n_trends, 1, figsize=(12, 3.5 * n_trends), squeeze=False)
    for k in range(n_trends):
        ax = axes[k, 0]
        ax.fill_between(t, rotated.trends_lower[k], rotated.trends_upper[k],
                        alpha=0.25, color=BAND_COLOR)
        ax.plot(t, rotated.trends_mean[k], color=BAND_COLOR, lw=2)
        ax.axhline(0, color="k", lw=0.5, ls="--")
        ax.set_title(f"Trend {k + 1}")

    return _save(fig, path, "trends.png")
