# run_preprocess.py - env-driven runner for the preprocessing stage only
from __future__ import annotations
import json, os
from pathlib import Path
from typing import Mapping
from preprocessing import PreprocessConfig, run_preprocess
from utils.logs import log as _log, ts as _ts


def config_from_env(env: Mapping[str, str] = os.environ) -> PreprocessConfig:
    return PreprocessConfig(
        input_path = env.get("PP_INPUT_PATH", ""),
        sku        = env.get("PP_SKU", ""),
        sku_col    = env.get("PP_SKU_COL") or None,
        date_col   = env.get("PP_DATE_COL") or None,
        price_col  = env.get("PP_PRICE_COL") or None,
        sheet_name = env.get("PP_SHEET_NAME") or None,
        split_index= int(env["PP_SPLIT_INDEX"]) if env.get("PP_SPLIT_INDEX") not in (None,"","null","None") else None,
        out_root   = env.get("PP_OUT_ROOT", str((Path.cwd() / "data_preprocessed").resolve())),
        run_outputs_dir = env.get("PP_RUN_OUTPUTS", str(Path.cwd() / "outputs")),
    )


def main():
    cfg = config_from_env()
    run_dir = Path(cfg.run_outputs_dir).parent; run_dir.mkdir(parents=True, exist_ok=True)
    log = run_dir / "backend_run.log"
    log.write_text("="*80 + f"\n[{_ts()}] Data preprocessing run starting\n" + json.dumps(cfg.__dict__, indent=2) + "\n" + "="*80 + "\n", encoding="utf-8")

    try:
        report = run_preprocess(cfg)
        with log.open("a", encoding="utf-8") as f:
            f.write(f"[{_ts()}] Completed OK\n")
            f.write(json.dumps(report, indent=2) + "\n")
            f.write("="*80 + "\n")
        print(json.dumps(report, indent=2))
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
