# run_price_stat.py - env-driven runner for the price comparison pipeline

from __future__ import annotations

import json, os
from dataclasses import asdict
from pathlib import Path
from typing import Mapping, Optional

from price_stat_pipeline import ConfigPriceStat, run_pipeline
from utils.logs import log as _log, ts as _ts

_TRUE = {"1", "true", "yes"}


def _opt_int(v: Optional[str]) -> Optional[int]:
    return int(v) if v not in (None, "", "null", "None") else None


def config_from_env(env: Mapping[str, str] = os.environ) -> ConfigPriceStat:
    cfg = ConfigPriceStat(
        data_path = env.get("PF_DATA_PATH", ""),
        sku       = env.get("PF_SKU", ""),
        sku_col   = env.get("PF_SKU_COL") or None,
        date_col  = env.get("PF_DATE_COL") or None,
        price_col = env.get("PF_PRICE_COL") or None,
        split_index = int(env.get("PF_SPLIT_INDEX") or 24),
        ma_window   = int(env.get("PF_MA_WINDOW") or 3),
        seasonal_period = int(env.get("PF_SEASONAL_PERIOD") or 12),
        acf_lags  = _opt_int(env.get("PF_ACF_LAGS")),
        strict    = env.get("PF_STRICT", "true").lower() in _TRUE,
        make_plots= env.get("PF_MAKE_PLOTS", "true").lower() in _TRUE,
    )
    if env.get("PF_STRATEGIES"):
        cfg.strategies = [s.strip() for s in env["PF_STRATEGIES"].split(",") if s.strip()]
    if env.get("PF_OUT_ROOT"):
        cfg.out_root = str(Path(env["PF_OUT_ROOT"]).resolve())
    return cfg


def main():
    _log("===== Price · Stat runner =====")
    cfg = config_from_env()
    for k, v in asdict(cfg).items():
        _log(f"{k} = {v}")

    out_root = Path(cfg.out_root); out_root.mkdir(parents=True, exist_ok=True)
    log = out_root / "backend_run.log"
    log.write_text("="*80 + f"\n[{_ts()}] Price comparison run starting\n" + json.dumps(asdict(cfg), indent=2) + "\n" + "="*80 + "\n", encoding="utf-8")
    try:
        report = run_pipeline(cfg)
        with log.open("a", encoding="utf-8") as f:
            f.write(f"[{_ts()}] Completed OK\n")
            f.write(json.dumps(report, indent=2) + "\n")
    except Exception as e:
        with log.open("a", encoding="utf-8") as f:
            f.write(f"[{_ts()}] ERROR: {e}\n")
        raise
    return report

if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        _log(f"ERROR: {e}")
        raise
