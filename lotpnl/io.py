# io.py
from __future__ import annotations
import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from .decimals import ZERO, compare, parse_decimal
from .exporter import HEADER
from .models import Lot, as_utc

import logging
logger = logging.getLogger("lotpnl.io")

REQUIRED_COLUMNS = ("asset_identifier", "kind", "quantity", "unit_price", "timestamp")
OPTIONAL_COLUMNS = ("asset_symbol", "reference_id", "block_ordinal")


def read_lots_from_csv(
    path,
    sep: str = ",",
) -> Tuple[Dict[str, List[Lot]], Dict[str, str]]:
    """
    Read buy/sell lots from CSV and group them by asset.

    Expected columns:
      asset_identifier,kind,quantity,unit_price,timestamp
    Optional:
      asset_symbol,reference_id,block_ordinal

    A file produced by the exporter is accepted too; its remaining-quantity
    and realized columns are ignored since matching starts from scratch.

    Returns:
        (lots_by_asset, symbols)

    Raises:
        ValueError: a required column is missing
        InvalidNumberFormat: a quantity or price is not a decimal
    """
    # everything as text: numbers go through parse_decimal, never float
    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")
    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    df["timestamp"] = pd.to_datetime(df["timestamp"].str.strip(), utc=True)
    df["block_ordinal"] = df["block_ordinal"].str.strip().replace("", "0")

    lots_by_asset: Dict[str, List[Lot]] = {}
    symbols: Dict[str, str] = {}
    for asset, grp in df.groupby("asset_identifier", sort=False):
        asset = str(asset).strip()
        sym = next((s.strip() for s in grp["asset_symbol"] if s.strip()), "")
        if sym:
            symbols[asset] = sym
        lots_by_asset[asset] = [
            Lot(
                kind=r.kind,
                quantity=r.quantity,
                unit_price=r.unit_price,
                timestamp=r.timestamp.to_pydatetime(),
                reference_id=r.reference_id.strip(),
                block_ordinal=int(r.block_ordinal),
            )
            for r in grp.itertuples(index=False)
        ]
    logger.debug("Read %d lots for %d assets from %s", len(df), len(lots_by_asset), path)
    return lots_by_asset, symbols


def lots_in_window(
    lots: Iterable[Lot],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Lot]:
    """Lots with ``start <= timestamp <= end`` (either bound optional)."""
    lo = as_utc(start) if start is not None else None
    hi = as_utc(end) if end is not None else None
    return [
        l for l in lots
        if (lo is None or l.timestamp >= lo) and (hi is None or l.timestamp <= hi)
    ]


def load_prices(json_path: Union[str, Path]) -> Dict[str, Decimal]:
    """
    Load current prices from a JSON file.

    Expected format:
    {
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": "2450.15",
        "BTC": 43000.5,
        ...
    }

    Raises:
        ValueError: if the structure is wrong or a price is negative
        InvalidNumberFormat: if a price is not a decimal
    """
    with open(json_path, "r", encoding="utf-8") as f:
        # parse_float keeps JSON numbers exact
        prices = json.load(f, parse_float=Decimal)

    if not isinstance(prices, dict):
        raise ValueError(f"JSON root must be an object/dict, got {type(prices).__name__}")

    out: Dict[str, Decimal] = {}
    for asset, raw in prices.items():
        if not asset.strip():
            raise ValueError(f"Asset identifier must be a non-empty string, got: {asset!r}")
        price = parse_decimal(raw, f"price of {asset}")
        if compare(price, ZERO) < 0:
            raise ValueError(f"Price for {asset} must be non-negative, got: {price}")
        out[asset.strip()] = price
    return out


def read_export(path_or_buffer) -> pd.DataFrame:
    """Load an export back with every value as text, exactly as written."""
    df = pd.read_csv(path_or_buffer, dtype=str, keep_default_na=False)
    unexpected = [c for c in df.columns if c not in HEADER]
    if unexpected:
        logger.warning("Export has unexpected column(s): %s", ", ".join(unexpected))
    return df
