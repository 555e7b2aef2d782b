# ---------------------------------------------------------------------------
# atsa_bayes.diagnostics - Sampling diagnostics report
# ---------------------------------------------------------------------------
from __future__ import annotations

import arviz as az
import polars as pl

from .config import ESS_BULK_MIN, RHAT_MAX
from .posterior import resolve_names
from .sampling import FittedModel


def divergence_count(fit: FittedModel) -> int:
    """Divergent transitions among the kept draws."""
    stats = getattr(fit.idata, "sample_stats", None)
    if stats is None or "diverging" not in stats:
        return 0
    return int(stats.diverging.sum().item())


def convergence_table(fit: FittedModel, var_names=None) -> pl.DataFrame:
    """``az.summary`` as a polars frame with a ``parameter`` column."""
    names = resolve_names(fit, var_names)
    summary = az.summary(fit.idata, var_names=names)
    columns = {c: summary[c].to_numpy() for c in summary.columns}
    return pl.DataFrame({"parameter": [str(i) for i in summary.index], **columns})


def print_diagnostics(fit: FittedModel, var_names=None) -> None:
    """Print divergences, the parameter summary and convergence warnings."""
    print("=" * 72)
    print(f"SAMPLING DIAGNOSTICS: {fit.model_name.value}")
    print("=" * 72)
    print(f"Chains: {fit.n_chains}  Draws/chain: {fit.n_draws}  "
          f"Time: {fit.sampling_time:.1f}s")
    print(f"Divergences: {divergence_count(fit)}")

    names = resolve_names(fit, var_names)
    summary = az.summary(fit.idata, var_names=names)
    print("\n" + summary.to_string())

    rhat_bad = summary[summary["r_hat"] > RHAT_MAX]
    ess_bad = summary[summary["ess_bulk"] < ESS_BULK_MIN]
    if len(rhat_bad) > 0:
        print(f"\n** WARNING: Parameters with R-hat > {RHAT_MAX}:")
        for pname, row in rhat_bad.iterrows():
            print(f"    {pname}: R-hat = {row['r_hat']:.4f}")
    if len(ess_bad) > 0:
        print(f"\n** WARNING: Parameters with ESS_bulk < {ESS_BULK_MIN}:")
        for pname, row in ess_bad.iterrows():
            print(f"    {pname}: ESS = {row['ess_bulk']:.0f}")
    if len(rhat_bad) == 0 and len(ess_bad) == 0:
        print(f"\nAll parameters converged (R-hat <= {RHAT_MAX}, ESS_bulk >= {ESS_BULK_MIN})")
