"""Unit tests for autocorrelation and differencing diagnostics."""

import numpy as np
import pytest

from core.errors import InsufficientWarmupError
from diagnostics import (
    autocorrelations,
    default_nlags,
    ndiffs,
    nsdiffs,
    plot_acf_pacf,
    run_diagnostics,
    seasonal_strength,
)


def _seasonal(n, period=12):
    t = np.arange(n, dtype=float)
    return 100.0 + 10.0 * np.sin(2 * np.pi * t / period)


def test_autocorrelations_shapes_and_lag0():
    rng = np.random.default_rng(0)
    x = rng.normal(size=60)
    a, p = autocorrelations(x, nlags=10)
    assert a.shape == (11,)
    assert p.shape == (11,)
    assert a[0] == pytest.approx(1.0)


def test_autocorrelations_default_lags():
    x = np.random.default_rng(1).normal(size=30)
    a, _ = autocorrelations(x)
    assert len(a) - 1 == default_nlags(30) == 14


def test_autocorrelations_too_many_lags_raises():
    with pytest.raises(InsufficientWarmupError):
        autocorrelations(np.arange(20, dtype=float), nlags=10)


def test_autocorrelations_short_series_raises():
    with pytest.raises(InsufficientWarmupError):
        autocorrelations([1.0, 2.0, 3.0])


def test_autocorrelations_constant_series():
    a, p = autocorrelations(np.full(12, 4.0), nlags=3)
    assert a[0] == 1.0
    assert np.isnan(a[1:]).all()


def test_ndiffs_linear_trend_needs_one_difference():
    assert ndiffs(np.arange(100, dtype=float)) == 1


def test_ndiffs_constant_series_is_zero():
    assert ndiffs(np.full(50, 3.0)) == 0


def test_nsdiffs_strong_seasonality():
    x = _seasonal(48)
    assert seasonal_strength(x, 12) > 0.64
    assert nsdiffs(x, period=12) == 1


def test_nsdiffs_short_or_flat_series_is_zero():
    assert nsdiffs(_seasonal(20), period=12) == 0
    assert nsdiffs(np.full(48, 1.0), period=12) == 0


def test_run_diagnostics_report():
    x = _seasonal(36) + np.arange(36) * 0.5
    rep = run_diagnostics(x, period=12)
    assert rep.nlags == default_nlags(36)
    assert len(rep.acf) == rep.nlags + 1
    assert rep.acf_diff is not None
    assert len(rep.acf_diff) <= rep.nlags + 1
    d = rep.as_dict()
    assert set(d) == {"nlags", "acf", "pacf", "acf_diff", "pacf_diff", "ndiffs", "nsdiffs"}
    assert d["nsdiffs"] in (0, 1)


def test_plot_acf_pacf_writes_png(tmp_path):
    out = tmp_path / "plots" / "acf.png"
    plot_acf_pacf(_seasonal(40), "demo", out, nlags=8)
    assert out.exists()


def test_autocorrelations_minimum_length():
    a, p = autocorrelations([1.0, 3.0, 2.0, 4.0])
    assert len(a) == len(p) == 2
