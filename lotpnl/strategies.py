from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Generator, Iterable, List, Sequence, Tuple

from .decimals import ZERO, compare, subtract
from .models import Lot
from .types import Method

TakeGen = Generator[Tuple[Decimal, Lot], None, None]


def _lot_key(lot: Lot):
    return (lot.timestamp, lot.block_ordinal)


class LotSelectionStrategy(ABC):
    """Order in which historical lots are consumed.

    The matching walk itself is shared; strategies differ only in how
    ``order`` sorts each side of the ledger.
    """
    name: str

    @abstractmethod
    def order(self, lots: Iterable[Lot]) -> List[Lot]:
        ...

    def take(self, buys: Sequence[Lot], need: Decimal) -> TakeGen:
        """Yield (take_qty, lot) while decrementing remaining quantities in-place."""
        for lot in buys:
            if compare(need, ZERO) <= 0:
                break
            if not lot.is_open():
                continue
            take = lot.remaining_quantity if compare(lot.remaining_quantity, need) <= 0 else need
            yield take, lot
            lot.remaining_quantity = subtract(lot.remaining_quantity, take)
            need = subtract(need, take)


@dataclass
class FIFOSelector(LotSelectionStrategy):
    name: str = "FIFO"

    def order(self, lots: Iterable[Lot]) -> List[Lot]:
        return sorted(lots, key=_lot_key)


@dataclass
class LIFOSelector(LotSelectionStrategy):
    name: str = "LIFO"

    def order(self, lots: Iterable[Lot]) -> List[Lot]:
        return sorted(lots, key=_lot_key, reverse=True)


# Simple factory/registry
_STRATEGIES = {
    Method.FIFO: FIFOSelector,
    Method.LIFO: LIFOSelector,
}


def get_strategy(name) -> LotSelectionStrategy:
    if isinstance(name, LotSelectionStrategy):
        return name
    return _STRATEGIES[Method.parse(name)]()
