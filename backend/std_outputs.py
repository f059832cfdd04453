# std_outputs.py - writers shared by the price pipeline runners
from __future__ import annotations
from pathlib import Path
from typing import Mapping
import json
import pandas as pd

PREDICTION_COLUMNS = ["model", "partition", "time_index", "month", "y_true", "y_pred"]


def ensure_out_root(out_root: Path) -> None:
    (out_root / "plots").mkdir(parents=True, exist_ok=True)
    (out_root / "artifacts").mkdir(parents=True, exist_ok=True)


def write_monthly_series(out_root: Path, df: pd.DataFrame) -> Path:
    path = out_root / "monthly_series.csv"
    df.to_csv(path, index=False)
    return path


def write_predictions_long(out_root: Path, df: pd.DataFrame) -> Path:
    missing = [c for c in PREDICTION_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"predictions_long is missing columns: {missing}")
    path = out_root / "predictions_long.csv"
    df.to_csv(path, index=False)
    return path


def write_metrics_long(out_root: Path, df: pd.DataFrame) -> Path:
    # Expect columns: ['model','partition','n','ME','MAE','MSE','RMSE','MPE','MAPE','sMAPE']
    path = out_root / "metrics_long.csv"
    df.to_csv(path, index=False)
    return path


def write_leaderboard(out_root: Path, df: pd.DataFrame) -> Path:
    path = out_root / "leaderboard.csv"
    df.to_csv(path, index=False)
    return path


def write_json(path: Path, payload: Mapping) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    return path


def write_config(out_root: Path, config: Mapping) -> Path:
    return write_json(out_root / "artifacts" / "config.json", config)
