from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd
import numpy as np

from utils.logs import log as _log

SKU_ALIASES = ["sku", "sku_id", "product_id", "productid", "item_id", "id"]
PRICE_ALIASES = ["price", "unit_price", "sale_price", "amount", "value"]


def sku_labels(s: pd.Series) -> pd.Series:
    """SKU ids as stripped strings; integral floats (numeric ids with gaps) lose their '.0'."""
    if pd.api.types.is_float_dtype(s):
        s = s.map(lambda v: str(int(v)) if pd.notna(v) and float(v).is_integer() else v)
    return s.astype(str).str.strip()


def normalize_columns(df: pd.DataFrame, sku_col: Optional[str] = None,
                      date_col: Optional[str] = None, price_col: Optional[str] = None) -> pd.DataFrame:
    """Rename the SKU/date/price columns of a raw price table to sku/date/price."""
    cols = {c: str(c).strip().lower() for c in df.columns}
    df = df.rename(columns=cols)

    def _pick(explicit, aliases, kind):
        if explicit:
            name = explicit.strip().lower()
            if name not in df.columns:
                raise ValueError(f"{kind} column '{explicit}' not found.")
            return name
        if kind == "date":
            return next((c for c in df.columns if 'date' in c), None)
        return next((c for c in aliases if c in df.columns), None)

    found_sku = _pick(sku_col, SKU_ALIASES, "sku")
    found_date = _pick(date_col, [], "date")
    found_price = _pick(price_col, PRICE_ALIASES, "price")
    if found_date is None:
        raise ValueError("No date column found. Include a 'date' column.")
    if found_price is None:
        raise ValueError("No price column found. Include a 'price' column.")
    if found_sku is None:
        raise ValueError("No SKU column found. Include a 'sku' column.")

    found = (found_sku, found_date, found_price)
    # a column already named sku/date/price but not picked would be duplicated by the rename
    df = df.drop(columns=[c for c in ('sku', 'date', 'price') if c in df.columns and c not in found])
    df = df.rename(columns={found_sku: 'sku', found_date: 'date', found_price: 'price'})
    df['date'] = pd.to_datetime(df['date'], errors='coerce')
    df['price'] = pd.to_numeric(df['price'], errors='coerce')
    df['sku'] = sku_labels(df['sku'])
    return df[['sku', 'date', 'price']]


def load_price_table(path: str, sku_col: Optional[str] = None, date_col: Optional[str] = None,
                     price_col: Optional[str] = None, sheet_name: Optional[str] = None) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {p}")
    _log(f"Reading price table: {p}")
    if p.suffix.lower() in {".xlsx", ".xls"}:
        raw = pd.read_excel(p, sheet_name=sheet_name or 0, engine="openpyxl")
    elif p.suffix.lower() == ".csv":
        raw = pd.read_csv(p)
    else:
        raise ValueError(f"Unsupported file format: {p.suffix}")
    df = normalize_columns(raw, sku_col=sku_col, date_col=date_col, price_col=price_col)
    _log(f"Loaded {len(df)} rows, {df['sku'].nunique()} SKUs")
    return df


def extract_sku_observations(df: pd.DataFrame, sku) -> pd.Series:
    """Price observations of one SKU as a Series indexed by date (dates may repeat).

    Rows with an unparseable date are dropped; missing prices are kept as NaN.
    """
    rows = df[sku_labels(df['sku']) == str(sku).strip()].dropna(subset=['date'])
    obs = pd.Series(rows['price'].to_numpy(dtype=float), index=pd.DatetimeIndex(rows['date']), name='price')
    obs.index.name = 'date'
    _log(f"SKU {sku}: {len(obs)} observations, {int(np.isnan(obs.to_numpy()).sum())} without price")
    return obs
