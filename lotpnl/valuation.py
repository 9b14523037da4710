from __future__ import annotations
from typing import Iterable

from .decimals import DecimalLike, ZERO, add, multiply, parse_decimal, subtract
from .models import Lot, Valuation
from .types import LotKind


def value_open_lots(buys: Iterable[Lot], current_price: DecimalLike) -> Valuation:
    """Mark the open remainder of *buys* to *current_price*.

    Fully closed lots contribute nothing to any of the sums.
    """
    price = parse_decimal(current_price, "current_price")
    cost_basis = ZERO
    value = ZERO
    open_qty = ZERO
    for lot in buys:
        if lot.kind != LotKind.BUY or not lot.is_open():
            continue
        cost_basis = add(cost_basis, multiply(lot.remaining_quantity, lot.unit_price))
        value = add(value, multiply(lot.remaining_quantity, price))
        open_qty = add(open_qty, lot.remaining_quantity)
    return Valuation(
        total_cost_basis=cost_basis,
        current_value=value,
        unrealized_pnl=subtract(value, cost_basis),
        open_quantity=open_qty,
    )
