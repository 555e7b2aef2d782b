# ---------------------------------------------------------------------------
# atsa_bayes.checks - Pointwise log-likelihood and PSIS-LOO model comparison
# ---------------------------------------------------------------------------
from __future__ import annotations

import logging
from collections.abc import Mapping

import arviz as az
import numpy as np
import polars as pl

from .sampling import FittedModel

logger = logging.getLogger(__name__)

# Pareto k-hat above this makes the PSIS estimate unreliable
KHAT_BAD = 0.7


def extract_log_lik(fit: FittedModel, var_name: str = "y") -> np.ndarray:
    """Pointwise log-likelihood, shape ``(n_draws, n_obs)`` with chains stacked."""
    idata = fit.idata
    if not hasattr(idata, "log_likelihood") or var_name not in idata.log_likelihood:
        raise ValueError(f"Fit has no pointwise log-likelihood for {var_name!r}")
    ll = idata.log_likelihood[var_name].values
    return ll.reshape(ll.shape[0] * ll.shape[1], -1)


def looic(fit: FittedModel, var_name: str = "y") -> float:
    """LOO information criterion, ``-2 * elpd_loo`` (lower is better)."""
    result = az.loo(fit.idata, var_name=var_name)
    return float(-2.0 * result.elpd_loo)


def loo_table(fits: Mapping[str, FittedModel], var_name: str = "y") -> pl.DataFrame:
    """Compare candidate fits by LOOIC, best first.

    Columns: ``model``, ``LOOIC``, ``se`` (on the LOOIC scale), ``p_loo``
    and ``n_bad_khat`` (observations with k-hat > 0.7).
    """
    rows = []
    for label, fit in fits.items():
        result = az.loo(fit.idata, var_name=var_name, pointwise=True)
        khat = np.asarray(result.pareto_k)
        n_bad = int(np.sum(khat > KHAT_BAD))
        if n_bad:
            logger.warning(f"{label}: {n_bad} observations with k-hat > {KHAT_BAD}")
        rows.append(
            {
                "model": str(label),
                "LOOIC": float(-2.0 * result.elpd_loo),
                "se": float(2.0 * result.se),
                "p_loo": float(result.p_loo),
                "n_bad_khat": n_bad,
            }
        )
    return pl.DataFrame(rows).sort("LOOIC")


def print_loo_table(table: pl.DataFrame) -> None:
    print("\n" + "=" * 72)
    print("LEAVE-ONE-OUT CROSS-VALIDATION (PSIS-LOO)")
    print("=" * 72)
    print(f"{'Model':<20} {'LOOIC':>10} {'SE':>8} {'p_loo':>8} {'k>0.7':>6}")
    print("-" * 72)
    for row in table.iter_rows(named=True):
        print(
            f"{row['model']:<20} {row['LOOIC']:>10.1f} {row['se']:>8.1f} "
            f"{row['p_loo']:>8.1f} {row['n_bad_khat']:>6}"
        )
