"""Unit tests for preprocessing module."""

import pandas as pd
import numpy as np
import pytest

from core.errors import AllMissingError, EmptyInputError, InvalidSplitError
from preprocessing import PreprocessConfig, run_preprocess
from preprocessing.preprocess import (
    regularize_daily,
    impute_carry_average,
    aggregate_monthly,
    split_train_test,
    prepare_series,
)


def _obs(pairs):
    dates = [pd.Timestamp(d) for d, _ in pairs]
    return pd.Series([v for _, v in pairs], index=pd.DatetimeIndex(dates), name="price")


def test_regularize_fills_calendar_and_averages_duplicates():
    obs = _obs([
        ("2024-03-05", 18.0),
        ("2024-03-01", 10.0),
        ("2024-03-02", 10.0),
        ("2024-03-02", 14.0),
        ("2024-03-04", 16.0),
    ])
    regular = regularize_daily(obs)

    assert len(regular) == 5
    assert regular.index.is_monotonic_increasing
    assert not regular.index.duplicated().any()
    assert regular.loc["2024-03-02"] == 12.0  # mean of 10 and 14
    assert np.isnan(regular.loc["2024-03-03"])
    assert regular.loc["2024-03-05"] == 18.0


def test_regularize_length_equals_days_spanned():
    obs = _obs([("2023-12-30", 1.0), ("2024-01-15", 2.0), ("2024-02-02", 3.0)])
    regular = regularize_daily(obs)
    spanned = (pd.Timestamp("2024-02-02") - pd.Timestamp("2023-12-30")).days + 1
    assert len(regular) == spanned
    assert int(regular.notna().sum()) == 3


def test_regularize_normalizes_intraday_timestamps():
    obs = _obs([("2024-01-01 09:00", 4.0), ("2024-01-01 17:30", 6.0), ("2024-01-02", 8.0)])
    regular = regularize_daily(obs)
    assert list(regular.to_numpy()) == [5.0, 8.0]


def test_regularize_single_observation():
    regular = regularize_daily(_obs([("2024-06-01", 3.5)]))
    assert len(regular) == 1
    assert regular.iloc[0] == 3.5


def test_regularize_empty_input_raises():
    with pytest.raises(EmptyInputError):
        regularize_daily(pd.Series([], dtype=float, index=pd.DatetimeIndex([])))


def test_impute_fills_gap_with_neighbour_average():
    regular = pd.Series([10.0, 12.0, np.nan, np.nan, 16.0], index=pd.date_range("2024-03-01", periods=5, freq="D"))
    imputed = impute_carry_average(regular)
    assert imputed.isna().sum() == 0
    assert imputed.iloc[2] == 14.0
    assert imputed.iloc[3] == 14.0
    # input untouched
    assert np.isnan(regular.iloc[2])


def test_impute_boundaries_use_nearest_known_value():
    regular = pd.Series([np.nan, 5.0, 7.0, 9.0, np.nan], index=pd.date_range("2024-01-01", periods=5, freq="D"))
    imputed = impute_carry_average(regular)
    assert imputed.iloc[0] == 5.0
    assert imputed.iloc[-1] == 9.0


def test_impute_is_identity_without_gaps():
    regular = pd.Series(np.random.rand(20) * 100, index=pd.date_range("2024-01-01", periods=20, freq="D"))
    imputed = impute_carry_average(regular)
    pd.testing.assert_series_equal(imputed, regular)


def test_impute_all_missing_raises():
    regular = pd.Series([np.nan, np.nan], index=pd.date_range("2024-01-01", periods=2, freq="D"))
    with pytest.raises(AllMissingError):
        impute_carry_average(regular)


def test_aggregate_monthly_means_and_time_index():
    idx = pd.date_range("2023-11-15", "2024-02-10", freq="D")
    imputed = pd.Series(np.arange(len(idx), dtype=float), index=idx)
    monthly = aggregate_monthly(imputed)

    assert list(monthly["time_index"]) == [1, 2, 3, 4]
    assert list(monthly["month"].astype(int)) == [11, 12, 1, 2]
    assert list(monthly["month"].cat.categories) == list(range(1, 13))
    assert int(monthly["n_days"].sum()) == len(imputed)
    nov = imputed[imputed.index.month == 11].mean()
    assert monthly["value"].iloc[0] == pytest.approx(nov)


def test_aggregate_monthly_is_order_independent():
    idx = pd.date_range("2022-01-01", "2023-06-30", freq="D")
    imputed = pd.Series(np.random.rand(len(idx)), index=idx)
    shuffled = imputed.sample(frac=1.0, random_state=7)

    pd.testing.assert_frame_equal(aggregate_monthly(imputed), aggregate_monthly(shuffled))


def test_aggregate_monthly_collapses_same_month_of_different_years():
    idx = pd.date_range("2022-01-01", "2023-01-31", freq="D")
    monthly = aggregate_monthly(pd.Series(1.0, index=idx))
    assert len(monthly) == 13
    assert int(monthly["month"].iloc[0]) == int(monthly["month"].iloc[-1]) == 1
    assert monthly["time_index"].iloc[-1] == 13


def test_split_train_test():
    monthly = aggregate_monthly(pd.Series(1.0, index=pd.date_range("2022-01-01", "2022-12-31", freq="D")))
    split = split_train_test(monthly, 9)
    assert len(split.train) == 9
    assert len(split.test) == 3
    assert split.horizon == 3
    assert len(split.train) + len(split.test) == len(monthly)
    assert list(split.test["time_index"]) == [10, 11, 12]


@pytest.mark.parametrize("k", [0, -1, 12, 40])
def test_split_out_of_bounds_raises(k):
    monthly = aggregate_monthly(pd.Series(1.0, index=pd.date_range("2022-01-01", "2022-12-31", freq="D")))
    with pytest.raises(InvalidSplitError):
        split_train_test(monthly, k)


def test_end_to_end_five_days_one_gap_one_duplicate():
    obs = _obs([
        ("2024-03-01", 10.0),
        ("2024-03-02", 10.0),
        ("2024-03-02", 14.0),
        ("2024-03-04", 16.0),
        ("2024-03-05", 18.0),
    ])
    prepared = prepare_series(obs)

    assert len(prepared.regular) == 5
    assert int(prepared.regular.isna().sum()) == 1
    assert prepared.imputed.loc["2024-03-03"] == 14.0
    assert len(prepared.monthly) == 1
    assert prepared.monthly["value"].iloc[0] == pytest.approx(np.mean([10.0, 12.0, 14.0, 16.0, 18.0]))


def test_run_preprocess_writes_outputs(tmp_path):
    rows = []
    for d in pd.date_range("2023-01-01", "2023-06-30", freq="D"):
        if d.day in (10, 20):
            continue
        rows.append({"Product_ID": "A1", "Order Date": d.date().isoformat(), "Unit_Price": 20.0 + d.month})
        rows.append({"Product_ID": "B2", "Order Date": d.date().isoformat(), "Unit_Price": 99.0})
    csv = tmp_path / "prices.csv"
    pd.DataFrame(rows).to_csv(csv, index=False)

    cfg = PreprocessConfig(
        input_path=str(csv),
        sku="A1",
        split_index=4,
        out_root=str(tmp_path / "pre"),
        run_outputs_dir=str(tmp_path / "outputs"),
    )
    report = run_preprocess(cfg)

    monthly = pd.read_csv(report["monthly_csv"])
    assert len(monthly) == 6
    assert report["n_days"] == 181
    assert report["split"] == {"train": 4, "test": 2}
    assert report["integrity"]["ok"] is True
    assert monthly["value"].iloc[0] == pytest.approx(21.0)
    assert (tmp_path / "outputs" / "preprocess_report.json").exists()


def test_run_preprocess_unknown_sku_raises(tmp_path):
    csv = tmp_path / "prices.csv"
    pd.DataFrame({"sku": ["A"], "date": ["2024-01-01"], "price": [1.0]}).to_csv(csv, index=False)
    cfg = PreprocessConfig(input_path=str(csv), sku="ZZZ", out_root=str(tmp_path / "pre"),
                           run_outputs_dir=str(tmp_path / "outputs"))
    with pytest.raises(EmptyInputError):
        run_preprocess(cfg)
