"""
Forecasting strategies compared by the price pipeline.

Each strategy is a small frozen dataclass exposing ``fit(train)`` and
``predict(fitted, horizon)``; the heavy lifting is done by scikit-learn,
pandas and statsmodels.
"""

from . import registry  # re-export for `from models import registry`
from . import metrics
