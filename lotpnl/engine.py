from __future__ import annotations
from dataclasses import replace
from typing import Iterable, List

import logging

from .decimals import ZERO, add, compare, multiply, subtract
from .errors import EmptyLotSet
from .models import Lot, MatchedPair, MatchResult
from .strategies import LotSelectionStrategy, get_strategy
from .types import LotKind, Method

logger = logging.getLogger("lotpnl.engine")


class LotMatcher:
    """Greedy sell-against-buy matcher with a pluggable lot-selection strategy.

    Works on copies of the supplied lots: the caller's objects are never
    mutated, so the same lots can be matched repeatedly with different
    methods and from several threads at once.
    """

    def __init__(self, strategy: LotSelectionStrategy | Method | str = Method.FIFO) -> None:
        self.strategy = get_strategy(strategy)

    @property
    def method(self) -> Method:
        return Method.parse(self.strategy.name)

    def match(self, lots: Iterable[Lot]) -> MatchResult:
        lots = list(lots)
        if not lots:
            raise EmptyLotSet()

        buys: List[Lot] = []
        sells: List[Lot] = []
        for lot in lots:
            if lot.kind == LotKind.BUY:
                # buys keep whatever remainder the caller carried in
                buys.append(replace(lot))
            else:
                sells.append(replace(lot, remaining_quantity=None))

        buys = self.strategy.order(buys)
        sells = self.strategy.order(sells)

        realized = ZERO
        unmatched = ZERO
        matches: List[MatchedPair] = []
        for sell in sells:
            for take, buy in self.strategy.take(buys, sell.remaining_quantity):
                cost = multiply(take, buy.unit_price)
                proceeds = multiply(take, sell.unit_price)
                pnl = subtract(proceeds, cost)
                realized = add(realized, pnl)
                sell.remaining_quantity = subtract(sell.remaining_quantity, take)
                matches.append(MatchedPair(
                    buy=buy, sell=sell, quantity=take,
                    cost=cost, proceeds=proceeds, realized_pnl=pnl,
                ))
            if compare(sell.remaining_quantity, ZERO) > 0:
                # oversell: the excess realizes nothing and opens no position
                unmatched = add(unmatched, sell.remaining_quantity)
                logger.debug(
                    "Dropping oversold quantity %s of sell %s",
                    sell.remaining_quantity, sell.reference_id or "<unreferenced>",
                )

        return MatchResult(
            realized_pnl=realized,
            buys=tuple(buys),
            sells=tuple(sells),
            matches=tuple(matches),
            unmatched_quantity=unmatched,
        )


def match_lots(lots: Iterable[Lot], method: LotSelectionStrategy | Method | str = Method.FIFO) -> MatchResult:
    return LotMatcher(method).match(lots)
