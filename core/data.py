from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from core.clock import DEFAULT_TIMEZONE
from core.dates import parse_to_canonical


logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("SALES_DATA_DIR", Path(__file__).resolve().parents[1] / "data"))
FILE_GLOBS = ("sales*.xlsx", "sales*.csv")

SALES_COLUMNS = {
    "Product": "category",
    "Product Name": "category",
    "product_name": "category",
    "Category": "category",
    "Item": "category",
    "Quantity": "quantity",
    "Qty": "quantity",
    "quantity": "quantity",
    "Price": "unit_price",
    "Unit Price": "unit_price",
    "price": "unit_price",
    "Date": "date",
    "Sale Date": "date",
    "sale_date": "date",
}
RECORD_COLUMNS = ["category", "quantity", "unit_price", "date"]


@dataclass(frozen=True)
class Record:
    category: str
    quantity: float
    unit_price: float
    date: str

    @property
    def revenue(self) -> float:
        return self.quantity * self.unit_price


def get_source_files(data_dir: Optional[Path] = None) -> List[Path]:
    base = Path(data_dir) if data_dir is not None else DATA_DIR
    files: List[Path] = []
    for pattern in FILE_GLOBS:
        files.extend(base.glob(pattern))
    return sorted(files)


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def find_header_row(df: pd.DataFrame, keywords: Iterable[str], search_rows: int = 10) -> Optional[int]:
    lowered = [k.lower() for k in keywords]
    for idx in range(min(search_rows, len(df))):
        row = df.iloc[idx].astype(str).str.lower().tolist()
        if any(k in " ".join(row) for k in lowered):
            return idx
    return None


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            series = df[col].astype("string").str.strip()
            series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
            df[col] = series
    return df


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency(value: object, symbol: str = "₹", decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{symbol}{float(value):,.{decimals}f}"


def frame_to_records(df: pd.DataFrame, tz: str = DEFAULT_TIMEZONE) -> List[Record]:
    """Turn a raw sales sheet into ``Record``s.

    Columns are matched through ``SALES_COLUMNS``. Dates go through
    ``parse_to_canonical`` so spreadsheet serials, native cells and text all
    land on ``YYYY-MM-DD``. Rows missing a category, a number or a readable date
    are dropped.
    """
    if df.empty:
        return []
    df = df.rename(columns={c: SALES_COLUMNS.get(str(c).strip(), str(c).strip()) for c in df.columns})
    df = df.loc[:, ~df.columns.duplicated()]
    missing = [c for c in RECORD_COLUMNS if c not in df.columns]
    if missing:
        logger.warning("Sales sheet is missing columns %s; skipping", missing)
        return []

    df = df[RECORD_COLUMNS].copy()
    df = coerce_str_safe(df, ["category"])
    df = numericize(df, ["quantity", "unit_price"])
    df["date"] = df["date"].apply(lambda v: parse_to_canonical(v, tz))

    valid = df.dropna(subset=RECORD_COLUMNS)
    dropped = len(df) - len(valid)
    if dropped:
        logger.warning("Dropped %d sales rows with a missing category, number or date", dropped)

    return [
        Record(
            category=str(row.category),
            quantity=float(row.quantity),
            unit_price=float(row.unit_price),
            date=str(row.date),
        )
        for row in valid.itertuples(index=False)
    ]


def read_sales_file(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    raw = pd.read_excel(path, header=None)
    header_row = find_header_row(raw, ["quantity", "qty"]) or 0
    return pd.read_excel(path, header=header_row)


@lru_cache(maxsize=4)
def _load_sales_cached(files_sig: Tuple[Tuple[str, float], ...], tz: str) -> Tuple[Record, ...]:
    records: List[Record] = []
    for name, _ in files_sig:
        path = Path(name)
        try:
            frame = read_sales_file(path)
        except Exception:
            logger.exception("Failed to read sales file %s", path.name)
            continue
        records.extend(frame_to_records(frame, tz))
    return tuple(records)


def load_sales_data(data_dir: Optional[Path] = None, tz: str = DEFAULT_TIMEZONE) -> Dict[str, object]:
    files = get_source_files(data_dir)
    if not files:
        return {"files": [], "records": ()}
    return {
        "files": [f.name for f in files],
        "records": _load_sales_cached(file_signature(files), tz),
    }
