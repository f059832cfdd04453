from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np

from core.errors import EmptyInputError, MismatchedLengthError


@dataclass(frozen=True)
class ErrorReport:
    n: int
    ME: float
    MAE: float
    MSE: float
    RMSE: float
    MPE: float
    MAPE: float
    sMAPE: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def safe_mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    eps = 1e-9
    denom = np.maximum(np.abs(y_true), eps)
    return float(np.mean(np.abs(y_true - y_pred) / denom))


def smape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    eps = 1e-9
    return float(np.mean(2 * np.abs(y_pred - y_true) / (np.abs(y_true) + np.abs(y_pred) + eps)))


def error_report(actual, predicted) -> ErrorReport:
    """Regression errors of ``predicted`` against ``actual``; percentage metrics are fractions."""
    y_true = np.asarray(actual, dtype=float).ravel()
    y_pred = np.asarray(predicted, dtype=float).ravel()
    if len(y_true) != len(y_pred):
        raise MismatchedLengthError(
            f"actual and predicted must have same length: {len(y_true)} vs {len(y_pred)}"
        )
    if len(y_true) == 0:
        raise EmptyInputError("Cannot score an empty sequence.")

    err = y_true - y_pred
    mse = float(np.mean(err ** 2))
    denom = np.where(np.abs(y_true) > 1e-9, y_true, 1e-9)
    return ErrorReport(
        n=int(len(y_true)),
        ME=float(np.mean(err)),
        MAE=float(np.mean(np.abs(err))),
        MSE=mse,
        RMSE=float(np.sqrt(mse)),
        MPE=float(np.mean(err / denom)),
        MAPE=safe_mape(y_true, y_pred),
        sMAPE=smape(y_true, y_pred),
    )
