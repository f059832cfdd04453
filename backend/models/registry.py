from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression
from statsmodels.tsa.holtwinters import ExponentialSmoothing

from core.errors import EmptyInputError, InsufficientWarmupError

MONTHS = list(range(1, 13))


@dataclass(frozen=True)
class FittedModel:
    """Result of fitting one strategy on a training prefix."""

    name: str
    fitted_values: pd.Series  # indexed by time_index, NaN during warm-up
    last_time_index: int
    last_month: int
    state: Any = None


class ForecastStrategy(Protocol):
    name: str

    def fit(self, train: pd.DataFrame) -> FittedModel:
        """Fit on a monthly frame with columns time_index, month, value."""

    def predict(self, fitted: FittedModel, horizon: int) -> np.ndarray:
        """Point forecasts for the ``horizon`` months following the training data."""


def _train_values(train: pd.DataFrame) -> pd.Series:
    if len(train) == 0:
        raise EmptyInputError("Training series is empty.")
    return pd.Series(
        train["value"].to_numpy(dtype=float),
        index=pd.Index(train["time_index"].to_numpy(dtype=int), name="time_index"),
        name="value",
    )


def _fitted(name: str, train: pd.DataFrame, values: pd.Series, state: Any) -> FittedModel:
    return FittedModel(
        name=name,
        fitted_values=values,
        last_time_index=int(train["time_index"].iloc[-1]),
        last_month=int(train["month"].iloc[-1]),
        state=state,
    )


def _check_horizon(horizon: int) -> int:
    horizon = int(horizon)
    if horizon <= 0:
        raise ValueError("Horizon must be positive for forecasting.")
    return horizon


def future_calendar(fitted: FittedModel, horizon: int) -> pd.DataFrame:
    """time_index and month-of-year of the months right after the training data."""
    steps = np.arange(1, _check_horizon(horizon) + 1)
    return pd.DataFrame(
        {
            "time_index": fitted.last_time_index + steps,
            "month": (fitted.last_month - 1 + steps) % 12 + 1,
        }
    )


# =========================
# Trend regression
# =========================

def _design_matrix(time_index, months, degree: int, seasonal: bool) -> pd.DataFrame:
    t = np.asarray(time_index, dtype=float)
    X = pd.DataFrame({("t" if p == 1 else f"t{p}"): t ** p for p in range(1, degree + 1)})
    if seasonal:
        dummies = pd.get_dummies(
            pd.Categorical(np.asarray(months, dtype=int), categories=MONTHS),
            prefix="m", drop_first=True, dtype=float,
        )
        X = pd.concat([X, dummies], axis=1)
    return X


@dataclass(frozen=True)
class _TrendRegression:
    """Least squares on a polynomial of time_index, optionally with month dummies."""
    name: str = "R0 • Trend regression"
    degree: int = 1
    seasonal: bool = False

    def fit(self, train: pd.DataFrame) -> FittedModel:
        y = _train_values(train)
        X = _design_matrix(train["time_index"], train["month"], self.degree, self.seasonal)
        reg = LinearRegression().fit(X, y.to_numpy())
        fitted = pd.Series(reg.predict(X), index=y.index)
        return _fitted(self.name, train, fitted, reg)

    def predict(self, fitted: FittedModel, horizon: int) -> np.ndarray:
        future = future_calendar(fitted, horizon)
        X = _design_matrix(future["time_index"], future["month"], self.degree, self.seasonal)
        return np.asarray(fitted.state.predict(X), dtype=float)


@dataclass(frozen=True)
class LinearTrend(_TrendRegression):
    name: str = "R1 • Linear trend"


@dataclass(frozen=True)
class QuadraticTrend(_TrendRegression):
    name: str = "R2 • Quadratic trend"
    degree: int = 2


@dataclass(frozen=True)
class SeasonalRegression(_TrendRegression):
    name: str = "R3 • Seasonal regression"
    seasonal: bool = True


# =========================
# Moving averages
# =========================

@dataclass(frozen=True)
class _MovingAverage:
    """Smoothing filter over a trailing window; forecast stays flat at the last smoothed value."""
    name: str = "M0 • Moving average"
    window: int = 3

    def smooth(self, y: pd.Series) -> pd.Series:
        raise NotImplementedError

    def fit(self, train: pd.DataFrame) -> FittedModel:
        window = int(self.window)
        if window < 1:
            raise ValueError("Moving average window must be >= 1.")
        y = _train_values(train)
        if window > len(y):
            raise InsufficientWarmupError(
                f"Window {window} is longer than the training series ({len(y)} points)."
            )
        smoothed = self.smooth(y)
        return _fitted(self.name, train, smoothed, float(smoothed.iloc[-1]))

    def predict(self, fitted: FittedModel, horizon: int) -> np.ndarray:
        return np.full(_check_horizon(horizon), float(fitted.state), dtype=float)


@dataclass(frozen=True)
class SimpleMovingAverage(_MovingAverage):
    name: str = "M1 • Simple moving average"

    def smooth(self, y: pd.Series) -> pd.Series:
        return y.rolling(int(self.window)).mean()


@dataclass(frozen=True)
class WeightedMovingAverage(_MovingAverage):
    """Linearly increasing weights 1..n, the newest point weighs most."""
    name: str = "M2 • Weighted moving average"

    def smooth(self, y: pd.Series) -> pd.Series:
        weights = np.arange(1, int(self.window) + 1, dtype=float)
        total = weights.sum()
        return y.rolling(int(self.window)).apply(lambda w: float(np.dot(w, weights) / total), raw=True)


@dataclass(frozen=True)
class ExponentialMovingAverage(_MovingAverage):
    """alpha = 2 / (n + 1), started from the simple average of the first n points."""
    name: str = "M3 • Exponential moving average"

    def smooth(self, y: pd.Series) -> pd.Series:
        n = int(self.window)
        alpha = 2.0 / (n + 1)
        seeded = pd.Series(np.concatenate([[y.iloc[:n].mean()], y.to_numpy()[n:]]))
        ewm = seeded.ewm(alpha=alpha, adjust=False).mean().to_numpy()
        out = pd.Series(np.nan, index=y.index, dtype=float)
        out.iloc[n - 1:] = ewm
        return out


# =========================
# Holt-Winters
# =========================

@dataclass(frozen=True)
class _HoltWinters:
    """Exponential smoothing; statsmodels optimizes the smoothing parameters."""
    name: str = "H0 • Holt-Winters"
    trend: Optional[str] = None
    seasonal: Optional[str] = None
    seasonal_periods: int = 12

    @property
    def min_observations(self) -> int:
        if self.seasonal:
            return 2 * int(self.seasonal_periods)
        return 4 if self.trend else 2

    def fit(self, train: pd.DataFrame) -> FittedModel:
        y = _train_values(train)
        if len(y) < self.min_observations:
            raise InsufficientWarmupError(
                f"{self.name} needs at least {self.min_observations} training points, got {len(y)}."
            )
        if self.seasonal == "mul" and (y <= 0).any():
            raise ValueError("Multiplicative seasonality requires strictly positive values.")

        model = ExponentialSmoothing(
            y.to_numpy(),
            trend=self.trend,
            seasonal=self.seasonal,
            seasonal_periods=int(self.seasonal_periods) if self.seasonal else None,
            initialization_method="estimated",
        )
        res = model.fit(optimized=True)
        fitted = pd.Series(np.asarray(res.fittedvalues, dtype=float), index=y.index)
        return _fitted(self.name, train, fitted, res)

    def predict(self, fitted: FittedModel, horizon: int) -> np.ndarray:
        return np.asarray(fitted.state.forecast(_check_horizon(horizon)), dtype=float)


@dataclass(frozen=True)
class HoltWintersLevel(_HoltWinters):
    name: str = "H1 • Holt-Winters level"


@dataclass(frozen=True)
class HoltWintersTrend(_HoltWinters):
    name: str = "H2 • Holt-Winters trend"
    trend: Optional[str] = "add"


@dataclass(frozen=True)
class HoltWintersSeasonalAdditive(_HoltWinters):
    name: str = "H3 • Holt-Winters additive seasonal"
    trend: Optional[str] = "add"
    seasonal: Optional[str] = "add"


@dataclass(frozen=True)
class HoltWintersSeasonalMultiplicative(_HoltWinters):
    name: str = "H4 • Holt-Winters multiplicative seasonal"
    trend: Optional[str] = "add"
    seasonal: Optional[str] = "mul"


# =========================
# Registry
# =========================

STRATEGY_FACTORIES: Dict[str, Callable[[int, int], ForecastStrategy]] = {
    "linear_trend": lambda window, period: LinearTrend(),
    "quadratic_trend": lambda window, period: QuadraticTrend(),
    "seasonal_regression": lambda window, period: SeasonalRegression(),
    "sma": lambda window, period: SimpleMovingAverage(window=window),
    "wma": lambda window, period: WeightedMovingAverage(window=window),
    "ema": lambda window, period: ExponentialMovingAverage(window=window),
    "hw_level": lambda window, period: HoltWintersLevel(seasonal_periods=period),
    "hw_trend": lambda window, period: HoltWintersTrend(seasonal_periods=period),
    "hw_seasonal_add": lambda window, period: HoltWintersSeasonalAdditive(seasonal_periods=period),
    "hw_seasonal_mul": lambda window, period: HoltWintersSeasonalMultiplicative(seasonal_periods=period),
}
DEFAULT_STRATEGY_KEYS: List[str] = list(STRATEGY_FACTORIES)


def build_strategies(keys: Optional[Sequence[str]] = None, window: int = 3,
                     seasonal_periods: int = 12) -> List[ForecastStrategy]:
    out = []
    for key in (DEFAULT_STRATEGY_KEYS if keys is None else keys):
        factory = STRATEGY_FACTORIES.get(str(key).strip().lower())
        if factory is None:
            raise KeyError(f"Unknown strategy: {key}")
        out.append(factory(int(window), int(seasonal_periods)))
    return out


_STRATEGIES: List[ForecastStrategy] = build_strategies()
_BY_NAME: Dict[str, ForecastStrategy] = {s.name: s for s in _STRATEGIES}


def list_strategies() -> List[str]:
    return [s.name for s in _STRATEGIES]


def get(name: str) -> ForecastStrategy:
    s: Optional[ForecastStrategy] = _BY_NAME.get(name)
    if s is None:
        raise KeyError(f"Unknown strategy: {name}")
    return s
