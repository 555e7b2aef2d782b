#!/usr/bin/env python
# ---------------------------------------------------------------------------
# fitting_models_with_pymc.py - Thin runner for the atsa_bayes lab chapter
# ---------------------------------------------------------------------------
"""Fit the chapter's models and save the plots.

Regression, RW, AR and state-space models use the airquality data; DFA
uses the Lake Washington phytoplankton and Washington harbor seal series.

Usage:
    python fitting_models_with_pymc.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import polars as pl

# Allow running from repo root without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from atsa_bayes.checks import loo_table, print_loo_table
from atsa_bayes.config import LIGHT_MCMC, OUTPUT_DIR, McmcConfig
from atsa_bayes.data import as_observations, series_matrix, zscore_rows
from atsa_bayes.datasets import load_dataset
from atsa_bayes.diagnostics import print_diagnostics
from atsa_bayes.forecast import extend_for_forecast
from atsa_bayes.plots import (
    plot_draws,
    plot_interval,
    plot_posterior_hist,
    plot_series,
    plot_trends,
)
from atsa_bayes.posterior import extract, extract_chains
from atsa_bayes.request import build_request
from atsa_bayes.rotation import rotate_trends
from atsa_bayes.sampling import PyMCEngine
from atsa_bayes.summary import credible_interval, quantiles

FORECAST_HORIZON = 10

PHYTOPLANKTON = ["Cryptomonas", "Diatoms", "Greens", "Unicells", "Other.algae"]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    # 1. Data ------------------------------------------------------------------
    airquality = load_dataset("datasets", "airquality")
    temp = as_observations(airquality["Temp"])
    wind = as_observations(airquality["Wind"])

    with PyMCEngine() as engine:
        # 2. Intercept-only regression ---------------------------------------
        lm = engine.fit(build_request(temp, x=[1.0] * len(temp)), "regression")
        print_diagnostics(lm, ["beta", "sigma"])
        pars = extract(lm)
        plot_posterior_hist(pars["beta"][:, 0], label="Intercept")
        print("beta quantiles (2.5%, 50%, 97.5%):", quantiles(pars["beta"][:, 0]))

        # 3. Wind on temperature, predicted values ---------------------------
        wind_fit = engine.fit(build_request(wind, x=temp - temp.mean()), "regression")
        plot_interval(
            credible_interval(extract(wind_fit, "pred")["pred"]),
            observed=wind,
            ylabel="Wind",
            path=OUTPUT_DIR / "wind_pred.png",
        )

        # 4. One chain, no burn-in: what the warm-up looks like --------------
        no_burn = McmcConfig(n_mcmc=1000, n_burn=1, n_chain=1, n_thin=1)
        lm_raw = engine.fit(build_request(temp, mcmc=no_burn), "regression")
        plot_draws(extract_chains(lm_raw, "beta")[..., 0], label="beta")

        # 5. Regression with AR(1) errors, RW, AR(1) -------------------------
        lm_cor = engine.fit(build_request(temp), "regression_cor")
        print_diagnostics(lm_cor, ["beta", "phi", "sigma"])

        rw = engine.fit(build_request(temp, est_drift=False), "rw")
        print_diagnostics(rw, ["sigma"])

        ar1 = engine.fit(build_request(temp, x=[1.0] * len(temp), P=1), "ar")
        print_diagnostics(ar1, ["beta", "phi", "sigma"])

        # 6. State-space models with a forecast ------------------------------
        temp_ext, _ = extend_for_forecast(temp, FORECAST_HORIZON)
        for name in ("ss_ar", "ss_rw"):
            ss = engine.fit(build_request(temp_ext), name)
            print_diagnostics(ss, ["sigma_process", "sigma_obs"])
            plot_interval(
                credible_interval(extract(ss, "pred")["pred"]),
                observed=temp,
                forecast_start=len(temp),
                title=f"{name}: states and {FORECAST_HORIZON}-step forecast",
                ylabel="Temp",
                path=OUTPUT_DIR / f"{name}_forecast.png",
            )

        # 7. DFA on Lake Washington phytoplankton, 1980-1989 ----------------
        plankton = load_dataset("MARSS", "lakeWAplanktonTrans")
        y = zscore_rows(
            series_matrix(plankton, PHYTOPLANKTON, pl.col("Year").is_between(1980, 1989))
        )
        plot_series(y, names=PHYTOPLANKTON, path=OUTPUT_DIR / "plankton.png")

        fits = {}
        for k in range(1, 6):
            req = build_request(y, num_trends=k, mcmc=LIGHT_MCMC)
            fits[f"{k} trend(s)"] = engine.fit(req, "dfa")
        print_loo_table(loo_table(fits))

        rotated = rotate_trends(fits["3 trend(s)"])
        plot_trends(rotated, path=OUTPUT_DIR / "plankton_trends.png")

        # 8. One-trend DFA on harbor seal counts -----------------------------
        seals = load_dataset("MARSS", "harborSealWA")
        sites = [c for c in seals.columns if c != "Year"]
        y_seal = series_matrix(seals, sites)
        plot_series(y_seal, names=sites, path=OUTPUT_DIR / "seals.png")

        seal = engine.fit(build_request(y_seal, num_trends=1), "dfa")
        print_diagnostics(seal, ["z_diag", "sigma"])
        plot_interval(
            credible_interval(extract(seal, "x")["x"][:, 0, :]),
            title="Trend",
            ylabel="Log abundance",
            path=OUTPUT_DIR / "seal_trend.png",
        )

    print("\n" + "=" * 72)
    print("atsa_bayes lab run complete.")
    print("=" * 72)


if __name__ == "__main__":
    main()
