"""lotpnl: FIFO/LIFO lot-matching PnL calculator with CSV export."""
from .types import LotKind, Method
from .errors import PnLError, InvalidNumberFormat, EmptyLotSet
from .models import Lot, MatchedPair, MatchResult, Valuation, PnLReport, ExportRow
from .strategies import FIFOSelector, LIFOSelector, get_strategy
from .engine import LotMatcher, match_lots
from .valuation import value_open_lots
from .calculator import PnLCalculator, calculate_pnl
from .results import PortfolioReport
from .exporter import CSVExporter
from .io import read_lots_from_csv, lots_in_window, load_prices, read_export

__all__ = [
    "LotKind",
    "Method",
    "PnLError",
    "InvalidNumberFormat",
    "EmptyLotSet",
    "Lot",
    "MatchedPair",
    "MatchResult",
    "Valuation",
    "PnLReport",
    "ExportRow",
    "FIFOSelector",
    "LIFOSelector",
    "get_strategy",
    "LotMatcher",
    "match_lots",
    "value_open_lots",
    "PnLCalculator",
    "calculate_pnl",
    "PortfolioReport",
    "CSVExporter",
    "read_lots_from_csv",
    "lots_in_window",
    "load_prices",
    "read_export",
]

__version__ = "0.1.0"
