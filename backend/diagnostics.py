# -*- coding: utf-8 -*-
"""
Autocorrelation and differencing diagnostics
--------------------------------------------
Informational signals on the training series: ACF/PACF of the series and of
its first difference, plus the number of ordinary (KPSS) and seasonal (STL
seasonal strength) differences needed to make it stationary. Nothing here is
fed back into strategy selection.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from statsmodels.tsa.stattools import acf, pacf, kpss
from statsmodels.tsa.seasonal import STL
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf
from statsmodels.tools.sm_exceptions import InterpolationWarning

from core.errors import InsufficientWarmupError

SEASONAL_STRENGTH_THRESHOLD = 0.64


@dataclass(frozen=True)
class DiagnosticsReport:
    nlags: int
    acf: np.ndarray
    pacf: np.ndarray
    acf_diff: Optional[np.ndarray]
    pacf_diff: Optional[np.ndarray]
    ndiffs: int
    nsdiffs: int

    def as_dict(self) -> Dict:
        def _lst(a):
            return None if a is None else [None if not np.isfinite(v) else float(v) for v in a]
        return {
            "nlags": self.nlags,
            "acf": _lst(self.acf),
            "pacf": _lst(self.pacf),
            "acf_diff": _lst(self.acf_diff),
            "pacf_diff": _lst(self.pacf_diff),
            "ndiffs": self.ndiffs,
            "nsdiffs": self.nsdiffs,
        }


def _clean(values) -> np.ndarray:
    x = np.asarray(values, dtype=float).ravel()
    return x[np.isfinite(x)]


def default_nlags(n: int) -> int:
    return max(1, min(24, n // 2 - 1))


def autocorrelations(values, nlags: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """ACF and PACF up to ``nlags`` (lag 0 included)."""
    x = _clean(values)
    n = len(x)
    if n < 4:
        raise InsufficientWarmupError(f"Need at least 4 points for autocorrelations, got {n}.")
    nlags = default_nlags(n) if nlags is None else int(nlags)
    if nlags < 1 or nlags >= n // 2:
        raise InsufficientWarmupError(f"nlags must be in [1, {n // 2 - 1}] for {n} points, got {nlags}.")

    if np.ptp(x) == 0:
        flat = np.full(nlags + 1, np.nan)
        flat[0] = 1.0
        return flat, flat.copy()
    return acf(x, nlags=nlags, fft=False), pacf(x, nlags=nlags)


def ndiffs(values, alpha: float = 0.05, max_d: int = 2) -> int:
    """Ordinary differences needed before KPSS stops rejecting level stationarity."""
    x = _clean(values)
    d = 0
    while d < max_d:
        if len(x) < 4 or np.ptp(x) == 0:
            break
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", InterpolationWarning)
            _, pvalue, _, _ = kpss(x, regression="c", nlags="auto")
        if pvalue >= alpha:
            break
        x = np.diff(x)
        d += 1
    return d


def seasonal_strength(values, period: int) -> float:
    """1 - Var(remainder) / Var(seasonal + remainder) of an STL decomposition, floored at 0."""
    x = _clean(values)
    res = STL(x, period=int(period), robust=True).fit()
    remainder = np.asarray(res.resid)
    var_sr = np.var(np.asarray(res.seasonal) + remainder)
    if var_sr == 0:
        return 0.0
    return float(max(0.0, 1.0 - np.var(remainder) / var_sr))


def nsdiffs(values, period: int = 12, max_D: int = 1) -> int:
    x = _clean(values)
    D = 0
    while D < max_D:
        if period < 2 or len(x) < 2 * period or np.ptp(x) == 0:
            break
        if seasonal_strength(x, period) <= SEASONAL_STRENGTH_THRESHOLD:
            break
        x = x[period:] - x[:-period]
        D += 1
    return D


def run_diagnostics(train_values, period: int = 12, nlags: Optional[int] = None) -> DiagnosticsReport:
    x = _clean(train_values)
    a, p = autocorrelations(x, nlags)
    used = len(a) - 1

    a_d = p_d = None
    dx = np.diff(x)
    if len(dx) >= 4:
        a_d, p_d = autocorrelations(dx, min(used, default_nlags(len(dx))))

    return DiagnosticsReport(
        nlags=used, acf=a, pacf=p, acf_diff=a_d, pacf_diff=p_d,
        ndiffs=ndiffs(x), nsdiffs=nsdiffs(x, period=period),
    )


def plot_acf_pacf(values, title: str, out_png: Path, nlags: Optional[int] = None):
    x = _clean(values)
    nlags = default_nlags(len(x)) if nlags is None else int(nlags)
    fig, axes = plt.subplots(1, 2, figsize=(14, 4))
    plot_acf(x, lags=nlags, ax=axes[0], title=f"ACF - {title}")
    plot_pacf(x, lags=nlags, ax=axes[1], title=f"PACF - {title}")
    fig.tight_layout()
    Path(out_png).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=110)
    plt.close(fig)
