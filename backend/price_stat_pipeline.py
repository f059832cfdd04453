# -*- coding: utf-8 -*-
"""
Price · Statistical comparison pipeline
---------------------------------------
One SKU's price history is regularized to a daily calendar, gap-filled,
averaged per month and split at a fixed index; a battery of classical
strategies (trend regressions, moving averages, Holt-Winters) is fitted on the
training prefix and scored on both partitions.

Usage (example):
    from price_stat_pipeline import run_pipeline, CONFIG
    CONFIG.data_path = "./data/prices.csv"
    CONFIG.sku = "1043"
    CONFIG.split_index = 24
    run_pipeline(CONFIG)
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from statsmodels.tools.sm_exceptions import ConvergenceWarning

import std_outputs
from diagnostics import DiagnosticsReport, plot_acf_pacf, run_diagnostics
from models import registry
from models.metrics import ErrorReport, error_report
from models.registry import FittedModel, ForecastStrategy, future_calendar
from preprocessing import Split, prepare_series, split_train_test
from utils.data import extract_sku_observations, load_price_table
from utils.logs import log as _log

warnings.filterwarnings("ignore", category=FutureWarning, module="statsmodels")
warnings.filterwarnings("ignore", category=ConvergenceWarning, module="statsmodels")
warnings.filterwarnings("ignore", message="Optimization failed to converge", module="statsmodels")

METRIC_COLUMNS = ["n", "ME", "MAE", "MSE", "RMSE", "MPE", "MAPE", "sMAPE"]

# =========================
# Configuration
# =========================

@dataclass
class ConfigPriceStat:
    # --- INPUTS ---
    data_path: str = "./data/prices.csv"
    sku: str = ""
    sku_col: Optional[str] = None
    date_col: Optional[str] = None
    price_col: Optional[str] = None

    # --- SPLIT ---
    split_index: int = 24

    # --- MODELS ---
    strategies: List[str] = field(default_factory=lambda: list(registry.DEFAULT_STRATEGY_KEYS))
    ma_window: int = 3
    seasonal_period: int = 12
    acf_lags: Optional[int] = None
    strict: bool = True

    # --- OUTPUTS ---
    out_root: str = str((Path.cwd() / "outputs" / "price_stat").resolve())
    make_plots: bool = True

CONFIG = ConfigPriceStat()

# =========================
# Harness
# =========================

@dataclass(frozen=True)
class StrategyResult:
    name: str
    fitted: FittedModel
    forecast: np.ndarray
    train_report: ErrorReport
    test_report: ErrorReport


def evaluate_strategy(strategy: ForecastStrategy, split: Split) -> StrategyResult:
    """Fit on train, forecast the test horizon and score both partitions."""
    fitted = strategy.fit(split.train)
    forecast = strategy.predict(fitted, split.horizon)

    in_sample = fitted.fitted_values
    valid = in_sample.notna().to_numpy()
    train_actual = split.train["value"].to_numpy(dtype=float)
    train_report = error_report(train_actual[valid], in_sample.to_numpy()[valid])
    test_report = error_report(split.test["value"].to_numpy(dtype=float), forecast)

    return StrategyResult(
        name=strategy.name, fitted=fitted, forecast=forecast,
        train_report=train_report, test_report=test_report,
    )


def compare_strategies(split: Split, strategies: Sequence[ForecastStrategy],
                       strict: bool = True) -> List[StrategyResult]:
    results = []
    for strategy in strategies:
        try:
            res = evaluate_strategy(strategy, split)
        except ValueError as e:
            if strict:
                raise
            _log(f"[WARN] {strategy.name} skipped: {e}")
            continue
        _log(f"[harness] {res.name}: train MAE={res.train_report.MAE:,.4f}, "
             f"test MAE={res.test_report.MAE:,.4f}, test RMSE={res.test_report.RMSE:,.4f}, "
             f"test MAPE={res.test_report.MAPE*100:.2f}%")
        results.append(res)
    return results


def results_to_frames(results: Sequence[StrategyResult], split: Split) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Long predictions table and long metrics table."""
    pred_frames, metric_rows = [], []
    for res in results:
        pred_frames.append(pd.DataFrame({
            "model": res.name,
            "partition": "train",
            "time_index": split.train["time_index"].to_numpy(),
            "month": split.train["month"].astype(int).to_numpy(),
            "y_true": split.train["value"].to_numpy(dtype=float),
            "y_pred": res.fitted.fitted_values.to_numpy(dtype=float),
        }))
        future = future_calendar(res.fitted, split.horizon)
        pred_frames.append(pd.DataFrame({
            "model": res.name,
            "partition": "test",
            "time_index": future["time_index"].to_numpy(),
            "month": future["month"].to_numpy(),
            "y_true": split.test["value"].to_numpy(dtype=float),
            "y_pred": res.forecast,
        }))
        for partition, rep in (("train", res.train_report), ("test", res.test_report)):
            metric_rows.append({"model": res.name, "partition": partition, **rep.as_dict()})

    preds = pd.concat(pred_frames, ignore_index=True) if pred_frames else pd.DataFrame(columns=std_outputs.PREDICTION_COLUMNS)
    metrics = pd.DataFrame(metric_rows, columns=["model", "partition"] + METRIC_COLUMNS)
    return preds, metrics


def leaderboard(metrics: pd.DataFrame) -> pd.DataFrame:
    test = metrics[metrics["partition"] == "test"]
    lb = test[["model", "MAE", "RMSE", "MAPE"]].sort_values("MAE").reset_index(drop=True)
    lb["rank"] = np.arange(1, len(lb) + 1)
    return lb

# =========================
# Plotting
# =========================

def plot_overlay(preds: pd.DataFrame, model: str, out_png: Path):
    g = preds[preds["model"] == model].sort_values("time_index")
    fig, ax = plt.subplots(figsize=(12, 4))
    ax.plot(g["time_index"], g["y_true"], color="black", lw=2, label="Actual")
    tr = g[g["partition"] == "train"]
    te = g[g["partition"] == "test"]
    ax.plot(tr["time_index"], tr["y_pred"], color="#59a4ff", lw=2, label=f"{model} (fitted)")
    ax.plot(te["time_index"], te["y_pred"], color="red", lw=2, ls="--", label=f"{model} (forecast)")
    if len(te):
        ax.axvline(te["time_index"].min() - 0.5, color="grey", ls=":")
    ax.set_title(model); ax.set_xlabel("time index (month)")
    ax.grid(True, ls=":"); ax.legend(loc="best")
    fig.tight_layout(); fig.savefig(out_png, dpi=110); plt.close(fig)


def plot_overlay_all(preds: pd.DataFrame, out_png: Path):
    fig, ax = plt.subplots(figsize=(12, 4))
    for model, g in preds[preds["partition"] == "test"].groupby("model", sort=False):
        ax.plot(g["time_index"], g["y_pred"], label=model, alpha=0.7)
    actual = preds.drop_duplicates("time_index").sort_values("time_index")
    ax.plot(actual["time_index"], actual["y_true"], color="black", label="Actual", linewidth=2)
    ax.set_title("Test horizon | ALL strategies")
    ax.legend(loc="best", fontsize=7); ax.grid(True)
    fig.tight_layout(); fig.savefig(out_png); plt.close(fig)


def plot_leaderboard_bar(lb: pd.DataFrame, out_png: Path):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.barh(lb["model"], lb["MAE"]); ax.invert_yaxis()
    ax.set_title("Leaderboard by test MAE")
    ax.set_xlabel("MAE (lower is better)")
    fig.tight_layout(); fig.savefig(out_png); plt.close(fig)


def _slug(name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in name).strip("_").lower()

# =========================
# Main runner
# =========================

def run_pipeline(config: ConfigPriceStat = CONFIG) -> Dict:
    out_root = Path(config.out_root)
    std_outputs.ensure_out_root(out_root)

    # Load + prepare
    table = load_price_table(config.data_path, config.sku_col, config.date_col, config.price_col)
    prepared = prepare_series(extract_sku_observations(table, config.sku))
    split = split_train_test(prepared.monthly, config.split_index)
    _log(f"Split: train={len(split.train)}, test={len(split.test)}")
    std_outputs.write_monthly_series(out_root, prepared.monthly)

    # Diagnostics on the training prefix
    diag: DiagnosticsReport = run_diagnostics(
        split.train["value"].to_numpy(dtype=float), period=config.seasonal_period, nlags=config.acf_lags
    )
    _log(f"[diagnostics] ndiffs={diag.ndiffs}, nsdiffs={diag.nsdiffs}, nlags={diag.nlags}")
    std_outputs.write_json(out_root / "diagnostics.json", diag.as_dict())

    # Strategies
    strategies = registry.build_strategies(config.strategies, window=config.ma_window,
                                           seasonal_periods=config.seasonal_period)
    results = compare_strategies(split, strategies, strict=config.strict)
    preds, metrics = results_to_frames(results, split)
    lb = leaderboard(metrics)

    std_outputs.write_predictions_long(out_root, preds)
    std_outputs.write_metrics_long(out_root, metrics)
    std_outputs.write_leaderboard(out_root, lb)

    if config.make_plots and results:
        plots = out_root / "plots"
        try:
            for res in results:
                plot_overlay(preds, res.name, plots / f"{_slug(res.name)}_overlay.png")
            plot_overlay_all(preds, plots / "overlay_all.png")
            plot_leaderboard_bar(lb, plots / "leaderboard_mae.png")
            train_values = split.train["value"].to_numpy(dtype=float)
            plot_acf_pacf(train_values, "train", plots / "acf_pacf_train.png", nlags=diag.nlags)
            if diag.acf_diff is not None:
                plot_acf_pacf(np.diff(train_values), "train (first difference)",
                              plots / "acf_pacf_train_diff.png", nlags=len(diag.acf_diff) - 1)
        except Exception as e:
            _log(f"[WARN] Plotting failed: {e}")

    # Run manifest + config snapshot
    with open(out_root / "artifacts" / "RUN.md", "w", encoding="utf-8") as f:
        f.write("# Price · Statistical run\n\n")
        f.write(f"- timestamp: {datetime.now(timezone.utc).isoformat()}\n")
        f.write(f"- data_path: {config.data_path}\n")
        f.write(f"- sku: {config.sku}\n")
        f.write(f"- months: {len(prepared.monthly)} (train={len(split.train)}, test={len(split.test)})\n")
        f.write(f"- strategies: {config.strategies}\n")
        f.write(f"- ma_window: {config.ma_window}\n")
        f.write(f"- seasonal_period: {config.seasonal_period}\n")
        f.write(f"\nMaster files written to: {config.out_root}\n")
        f.write("- monthly_series.csv\n- predictions_long.csv\n- metrics_long.csv\n- leaderboard.csv\n- diagnostics.json\n")
        f.write("- plots: *_overlay.png, overlay_all.png, leaderboard_mae.png, acf_pacf_*.png\n")
    std_outputs.write_config(out_root, asdict(config))

    _log("Test-set comparison:")
    for row in lb.itertuples(index=False):
        _log(f"  {row.rank:>2}. {row.model:<45} MAE={row.MAE:,.4f}  RMSE={row.RMSE:,.4f}  MAPE={row.MAPE*100:.2f}%")
    _log(f"[OK] Master outputs in: {config.out_root}")

    return {
        "out_root": str(out_root),
        "n_months": int(len(prepared.monthly)),
        "n_train": int(len(split.train)),
        "n_test": int(len(split.test)),
        "models": [r.name for r in results],
        "diagnostics": {"ndiffs": diag.ndiffs, "nsdiffs": diag.nsdiffs},
    }

if __name__ == "__main__":
    run_pipeline(CONFIG)
