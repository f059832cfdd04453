"""Unit tests for error metrics."""

import numpy as np
import pytest

from core.errors import EmptyInputError, MismatchedLengthError
from models.metrics import error_report, safe_mape, smape


def test_identical_forecast_scores_zero():
    y = np.array([3.0, 1.5, 8.0, 2.25])
    rep = error_report(y, y.copy())
    assert rep.MAE == 0.0
    assert rep.MSE == 0.0
    assert rep.RMSE == 0.0
    assert rep.ME == 0.0
    assert rep.MAPE == 0.0
    assert rep.n == 4


def test_known_values():
    rep = error_report([1.0, 2.0, 3.0], [2.0, 2.0, 2.0])
    assert rep.ME == pytest.approx(0.0)
    assert rep.MAE == pytest.approx(2.0 / 3.0)
    assert rep.MSE == pytest.approx(2.0 / 3.0)
    assert rep.RMSE == pytest.approx(np.sqrt(2.0 / 3.0))
    assert rep.MAPE == pytest.approx((1.0 + 0.0 + 1.0 / 3.0) / 3.0)
    assert rep.MPE == pytest.approx((-1.0 + 0.0 + 1.0 / 3.0) / 3.0)


def test_mismatched_lengths_raise():
    with pytest.raises(MismatchedLengthError):
        error_report([1.0, 2.0, 3.0], [1.0, 2.0])


def test_empty_pair_raises():
    with pytest.raises(EmptyInputError):
        error_report([], [])


def test_report_as_dict_keys():
    d = error_report([1.0, 2.0], [1.5, 2.5]).as_dict()
    assert list(d) == ["n", "ME", "MAE", "MSE", "RMSE", "MPE", "MAPE", "sMAPE"]


def test_percentage_helpers_handle_zero_actuals():
    y_true = np.array([0.0, 1.0])
    y_pred = np.array([0.0, 1.0])
    assert safe_mape(y_true, y_pred) == 0.0
    assert smape(y_true, y_pred) == 0.0
