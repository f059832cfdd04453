"""Preprocessing module for single-SKU price series."""

from .preprocess import (
    PreprocessConfig,
    PreparedSeries,
    Split,
    run_preprocess,
    prepare_series,
    regularize_daily,
    impute_carry_average,
    aggregate_monthly,
    split_train_test,
)
from .integrity import compute_integrity_report

__all__ = [
    "PreprocessConfig",
    "PreparedSeries",
    "Split",
    "run_preprocess",
    "prepare_series",
    "regularize_daily",
    "impute_carry_average",
    "aggregate_monthly",
    "split_train_test",
    "compute_integrity_report",
]
