"""Preparation of a single-SKU price series for forecasting.

Raw (date, price) observations go through four stages, each a pure function
returning a new object:

    regularize_daily -> impute_carry_average -> aggregate_monthly -> split_train_test
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from core.errors import AllMissingError, EmptyInputError, InvalidSplitError
from utils.data import extract_sku_observations, load_price_table
from utils.logs import log as _log

from .integrity import compute_integrity_report


MONTH_CATEGORIES = list(range(1, 13))


@dataclass
class PreprocessConfig:
    """Configuration for preprocessing run."""

    input_path: str
    sku: str
    sku_col: Optional[str] = None
    date_col: Optional[str] = None
    price_col: Optional[str] = None
    sheet_name: Optional[str] = None
    split_index: Optional[int] = None
    out_root: str = "data_preprocessed"
    run_outputs_dir: str = "outputs"


@dataclass(frozen=True)
class Split:
    """Contiguous train prefix and held-out suffix of a monthly series."""

    train: pd.DataFrame
    test: pd.DataFrame

    @property
    def horizon(self) -> int:
        return len(self.test)


@dataclass(frozen=True)
class PreparedSeries:
    observations: pd.Series
    regular: pd.Series
    imputed: pd.Series
    monthly: pd.DataFrame


def regularize_daily(observations: pd.Series) -> pd.Series:
    """
    Reduce observations to one value per calendar day over the full span.

    Duplicate days are averaged; days absent from the input are NaN.

    Args:
        observations: values indexed by timestamp, index may repeat

    Returns:
        Series on a daily DatetimeIndex from the first to the last day
    """
    if observations is None or len(observations) == 0:
        raise EmptyInputError("No observations to regularize.")

    idx = pd.to_datetime(pd.Index(observations.index), errors="coerce")
    obs = pd.Series(np.asarray(observations, dtype=float), index=idx)
    obs = obs[obs.index.notna()]
    if obs.empty:
        raise EmptyInputError("No observation carries a valid timestamp.")

    daily = obs.groupby(obs.index.normalize()).mean()
    full_calendar = pd.date_range(start=daily.index.min(), end=daily.index.max(), freq="D")
    regular = daily.reindex(full_calendar)
    regular.index.name = "date"
    regular.name = observations.name
    return regular


def impute_carry_average(regular: pd.Series) -> pd.Series:
    """
    Fill gaps with the mean of the forward carry and the backward carry.

    At the edges one carry is undefined and the other one is used alone, so a
    leading gap takes the first known value and a trailing gap the last.
    """
    if regular.notna().sum() == 0:
        raise AllMissingError("Series has no known value to impute from.")

    forward = regular.ffill()
    backward = regular.bfill()
    forward = forward.fillna(backward)
    backward = backward.fillna(forward)
    return (forward + backward) / 2.0


def aggregate_monthly(imputed: pd.Series) -> pd.DataFrame:
    """
    Average a daily series per calendar month.

    The year is dropped from the output; rows stay in calendar order and carry
    a month-of-year category (1..12, shared across years) and a gapless
    time_index starting at 1.
    """
    if len(imputed) == 0:
        raise EmptyInputError("No daily values to aggregate.")

    idx = pd.DatetimeIndex(imputed.index)
    grouped = imputed.groupby([idx.year, idx.month], sort=True).agg(["mean", "size"])
    months = grouped.index.get_level_values(1)

    monthly = pd.DataFrame(
        {
            "month": pd.Categorical(months, categories=MONTH_CATEGORIES),
            "time_index": np.arange(1, len(grouped) + 1, dtype=int),
            "value": grouped["mean"].to_numpy(dtype=float),
            "n_days": grouped["size"].to_numpy(dtype=int),
        }
    )
    return monthly


def split_train_test(monthly: pd.DataFrame, k: int) -> Split:
    """First ``k`` rows train, the remainder test."""
    n = len(monthly)
    if k is None or int(k) != k or k <= 0 or k >= n:
        raise InvalidSplitError(f"Split index must satisfy 0 < k < {n}, got {k}.")
    k = int(k)
    return Split(
        train=monthly.iloc[:k].reset_index(drop=True),
        test=monthly.iloc[k:].reset_index(drop=True),
    )


def prepare_series(observations: pd.Series) -> PreparedSeries:
    regular = regularize_daily(observations)
    n_missing = int(regular.isna().sum())
    _log(f"Regularized: {len(regular)} days ({regular.index.min().date()} .. {regular.index.max().date()}), {n_missing} missing")
    imputed = impute_carry_average(regular)
    monthly = aggregate_monthly(imputed)
    _log(f"Aggregated: {len(monthly)} months")
    return PreparedSeries(observations=observations, regular=regular, imputed=imputed, monthly=monthly)


def run_preprocess(cfg: PreprocessConfig) -> Dict:
    """
    Load the price table, prepare one SKU and write the daily/monthly series.

    Args:
        cfg: Preprocessing configuration

    Returns:
        Report dictionary
    """
    _log("=" * 80)
    _log("Starting preprocessing")
    _log(f"Input: {cfg.input_path}")
    _log(f"SKU: {cfg.sku}")

    table = load_price_table(cfg.input_path, cfg.sku_col, cfg.date_col, cfg.price_col, cfg.sheet_name)
    prepared = prepare_series(extract_sku_observations(table, cfg.sku))

    split = None
    if cfg.split_index is not None:
        split = split_train_test(prepared.monthly, cfg.split_index)
        _log(f"Split: train={len(split.train)}, test={len(split.test)}")

    out_root = Path(cfg.out_root)
    out_root.mkdir(parents=True, exist_ok=True)
    stem = f"sku_{cfg.sku}"

    daily_csv = out_root / f"{stem}__daily.csv"
    pd.DataFrame(
        {
            "date": prepared.regular.index,
            "price_raw": prepared.regular.to_numpy(),
            "price": prepared.imputed.to_numpy(),
        }
    ).to_csv(daily_csv, index=False)
    _log(f"Saved: {daily_csv}")

    monthly_csv = out_root / f"{stem}__monthly.csv"
    prepared.monthly.to_csv(monthly_csv, index=False)
    _log(f"Saved: {monthly_csv}")

    run_outputs = Path(cfg.run_outputs_dir)
    run_outputs.mkdir(parents=True, exist_ok=True)
    preview_path = run_outputs / "preprocess_preview.csv"
    prepared.monthly.head(500).to_csv(preview_path, index=False)

    report = {
        "input_path": str(cfg.input_path),
        "sku": str(cfg.sku),
        "daily_csv": str(daily_csv),
        "monthly_csv": str(monthly_csv),
        "preview_path": str(preview_path),
        "n_observations": int(len(prepared.observations)),
        "n_days": int(len(prepared.regular)),
        "n_imputed": int(prepared.regular.isna().sum()),
        "n_months": int(len(prepared.monthly)),
        "split": None if split is None else {"train": len(split.train), "test": len(split.test)},
        "integrity": compute_integrity_report(prepared.regular, prepared.imputed, prepared.monthly, split),
    }

    report_path = run_outputs / "preprocess_report.json"
    report_path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    _log(f"Saved report: {report_path}")

    _log("Preprocessing completed successfully")
    return report
