"""Invariant checks on the derived series (daily, imputed, monthly, split)."""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd


def check_regular_series(regular: pd.Series) -> Dict:
    """
    Daily series must be strictly increasing, one row per calendar day.

    Args:
        regular: Output of the regularizer

    Returns:
        Dictionary with regular_ok, n_days, n_days_spanned, n_duplicates, n_missing
    """
    idx = pd.DatetimeIndex(regular.index)
    if len(idx) == 0:
        return {"regular_ok": False, "error": "Empty series", "n_days": 0}

    n_spanned = int((idx.max() - idx.min()).days) + 1
    n_duplicates = int(idx.duplicated().sum())
    # timedelta comparison, independent of the index resolution (ns/us)
    steps = idx.to_series().diff().iloc[1:]
    bad_steps = int((steps != pd.Timedelta(days=1)).sum())

    return {
        "regular_ok": bool(n_duplicates == 0 and bad_steps == 0 and len(idx) == n_spanned),
        "n_days": int(len(idx)),
        "n_days_spanned": n_spanned,
        "n_duplicates": n_duplicates,
        "n_bad_steps": bad_steps,
        "n_missing": int(regular.isna().sum()),
    }


def check_imputed_series(imputed: pd.Series, regular: Optional[pd.Series] = None) -> Dict:
    n_missing = int(imputed.isna().sum())
    known_changed = 0
    if regular is not None:
        known = regular.notna()
        known_changed = int((~np.isclose(imputed[known], regular[known])).sum())
    return {
        "imputed_ok": bool(n_missing == 0 and known_changed == 0),
        "n_missing": n_missing,
        "n_known_changed": known_changed,
    }


def check_monthly_series(monthly: pd.DataFrame, n_daily: Optional[int] = None) -> Dict:
    """Gapless time_index 1..M, 12 month levels, day counts adding up to the daily length."""
    m = len(monthly)
    time_ok = bool(np.array_equal(monthly["time_index"].to_numpy(), np.arange(1, m + 1)))
    months_ok = bool(
        isinstance(monthly["month"].dtype, pd.CategoricalDtype)
        and list(monthly["month"].cat.categories) == list(range(1, 13))
    )
    report = {
        "monthly_ok": time_ok and months_ok,
        "n_months": int(m),
        "time_index_ok": time_ok,
        "month_levels_ok": months_ok,
    }
    if n_daily is not None and "n_days" in monthly.columns:
        total = int(monthly["n_days"].sum())
        report["n_days_total"] = total
        report["monthly_ok"] = report["monthly_ok"] and total == int(n_daily)
    return report


def check_split(split, monthly: pd.DataFrame) -> Dict:
    n_train, n_test = len(split.train), len(split.test)
    joined = np.concatenate([split.train["time_index"].to_numpy(), split.test["time_index"].to_numpy()])
    contiguous = bool(np.array_equal(joined, monthly["time_index"].to_numpy()))
    return {
        "split_ok": bool(n_train + n_test == len(monthly) and contiguous and n_train > 0 and n_test > 0),
        "n_train": int(n_train),
        "n_test": int(n_test),
        "contiguous": contiguous,
    }


def compute_integrity_report(regular: pd.Series, imputed: pd.Series, monthly: pd.DataFrame,
                             split=None) -> Dict:
    """
    Run every stage check and aggregate them.

    Returns:
        Integrity report dictionary with an overall ``ok`` flag
    """
    report = {
        "regular": check_regular_series(regular),
        "imputed": check_imputed_series(imputed, regular),
        "monthly": check_monthly_series(monthly, n_daily=len(imputed)),
    }
    if split is not None:
        report["split"] = check_split(split, monthly)

    report["ok"] = all(
        section.get(f"{name}_ok", False) for name, section in report.items()
    )
    return report
