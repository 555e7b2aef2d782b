# ---------------------------------------------------------------------------
# atsa_bayes.data - Observation preparation helpers
# ---------------------------------------------------------------------------
"""Turn polars columns into observation arrays and prepare DFA matrices."""

from __future__ import annotations

import warnings

import numpy as np
import polars as pl


def as_observations(values: pl.Series | np.ndarray | list) -> np.ndarray:
    """Float array with nulls / NaN as ``NaN`` (the missing marker)."""
    if isinstance(values, pl.Series):
        values = values.cast(pl.Float64).fill_nan(None).to_numpy()
    return np.asarray(values, dtype=float)


def series_matrix(
    df: pl.DataFrame,
    columns: list[str],
    filter_expr: pl.Expr | None = None,
) -> np.ndarray:
    """Select *columns* (optionally filtered rows) as ``(n_series, n_time)``.

    Example::

        series_matrix(plank, ["Diatoms", "Greens"], pl.col("Year") >= 1980)
    """
    if filter_expr is not None:
        df = df.filter(filter_expr)
    return np.vstack([as_observations(df[c]) for c in columns])


def zscore_rows(y: np.ndarray) -> np.ndarray:
    """Centre and scale each series (row) ignoring missing values.

    Uses the sample variance (``ddof=1``) as R's ``var`` does.  Constant
    rows are only centred.
    """
    y = np.asarray(y, dtype=float)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        mean = np.nanmean(y, axis=-1, keepdims=True)
        sd = np.nanstd(y, axis=-1, ddof=1, keepdims=True)
    sd = np.where(np.isfinite(sd) & (sd > 0), sd, 1.0)
    return (y - mean) / sd
