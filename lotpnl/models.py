from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from .decimals import DecimalLike, Money, ZERO, add, compare, format_decimal, parse_decimal
from .errors import InvalidNumberFormat
from .types import LotKind, Method

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def as_utc(ts) -> datetime:
    if isinstance(ts, str):
        ts = datetime.fromisoformat(ts.strip())
    if not isinstance(ts, datetime):
        raise TypeError(f"timestamp must be a datetime or ISO string, got {type(ts).__name__}")
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(slots=True)
class Lot:
    """Single buy or sell event.

    ``quantity`` is the amount as transacted and never changes.
    ``remaining_quantity`` starts equal to it and is decremented by the
    matching engine on its own working copies only.
    """
    kind: LotKind
    quantity: Decimal
    unit_price: Money
    timestamp: datetime
    reference_id: str = ""
    block_ordinal: int = 0
    remaining_quantity: Optional[Decimal] = None

    def __post_init__(self) -> None:
        self.kind = LotKind.parse(self.kind)
        self.quantity = parse_decimal(self.quantity, "quantity")
        self.unit_price = parse_decimal(self.unit_price, "unit_price")
        self.timestamp = as_utc(self.timestamp)
        self.reference_id = "" if self.reference_id is None else str(self.reference_id)
        self.block_ordinal = int(self.block_ordinal)
        if compare(self.quantity, ZERO) < 0:
            raise InvalidNumberFormat(self.quantity, "quantity", "must be non-negative")
        if self.remaining_quantity is None:
            self.remaining_quantity = self.quantity
        else:
            self.remaining_quantity = parse_decimal(self.remaining_quantity, "remaining_quantity")
            if compare(self.remaining_quantity, ZERO) < 0 or compare(self.remaining_quantity, self.quantity) > 0:
                raise InvalidNumberFormat(
                    self.remaining_quantity, "remaining_quantity", "must be between 0 and quantity"
                )

    @classmethod
    def buy(cls, quantity: DecimalLike, unit_price: DecimalLike, timestamp, **kw) -> "Lot":
        return cls(LotKind.BUY, quantity, unit_price, timestamp, **kw)

    @classmethod
    def sell(cls, quantity: DecimalLike, unit_price: DecimalLike, timestamp, **kw) -> "Lot":
        return cls(LotKind.SELL, quantity, unit_price, timestamp, **kw)

    def is_open(self) -> bool:
        return compare(self.remaining_quantity, ZERO) > 0


@dataclass(frozen=True, slots=True)
class MatchedPair:
    """Quantity of one sell lot matched against one buy lot."""
    buy: Lot
    sell: Lot
    quantity: Decimal
    cost: Money
    proceeds: Money
    realized_pnl: Money


@dataclass(frozen=True, slots=True)
class MatchResult:
    realized_pnl: Money
    buys: Tuple[Lot, ...]
    sells: Tuple[Lot, ...] = ()
    matches: Tuple[MatchedPair, ...] = ()
    unmatched_quantity: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class Valuation:
    total_cost_basis: Money
    current_value: Money
    unrealized_pnl: Money
    open_quantity: Decimal


@dataclass(frozen=True, slots=True)
class PnLReport:
    """PnL of one asset for one account.

    ``lots`` holds the post-match buy lots in method order; ``sells`` and
    ``matches`` are kept for audit and export.
    """
    method: Method
    realized_pnl: Money
    unrealized_pnl: Money
    total_pnl: Money
    total_cost_basis: Money
    current_value: Money
    open_quantity: Decimal
    current_price: Money
    lots: Tuple[Lot, ...]
    sells: Tuple[Lot, ...] = ()
    matches: Tuple[MatchedPair, ...] = ()
    account: str = ""
    asset_symbol: str = ""
    asset_identifier: str = ""
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def realized_for(self, lot: Lot) -> Money:
        """Realized PnL attributed to *lot* (non-zero for sell lots only)."""
        out = ZERO
        for m in self.matches:
            if m.sell is lot:
                out = add(out, m.realized_pnl)
        return out


@dataclass(slots=True)
class ExportRow:
    """One line of the tabular export."""
    account: str
    asset_symbol: str
    asset_identifier: str
    reference_id: str
    kind: LotKind
    quantity: Decimal
    unit_price: Money
    remaining_quantity: Decimal
    realized_pnl: Money
    timestamp: datetime
    block_ordinal: int

    def to_record(self) -> list:
        return [
            self.account,
            self.asset_symbol,
            self.asset_identifier,
            self.reference_id,
            LotKind.parse(self.kind).value,
            format_decimal(self.quantity),
            format_decimal(self.unit_price),
            format_decimal(self.remaining_quantity),
            format_decimal(self.realized_pnl),
            as_utc(self.timestamp).strftime(TIMESTAMP_FORMAT),
            str(int(self.block_ordinal)),
        ]
