from __future__ import annotations
from typing import Iterable, List, Mapping, Optional, Sequence, Union

import logging

from .decimals import DecimalLike, add, parse_decimal
from .engine import LotMatcher
from .models import ExportRow, Lot, PnLReport
from .results import PortfolioReport, report_export_rows
from .strategies import LotSelectionStrategy
from .types import Method
from .valuation import value_open_lots

logger = logging.getLogger("lotpnl.calculator")


class PnLCalculator:
    """Realized + unrealized PnL over caller-supplied lots.

    Holds no state between calls; one instance can serve concurrent callers.
    """

    def __init__(self, method: Union[Method, str, LotSelectionStrategy] = Method.FIFO) -> None:
        self.matcher = LotMatcher(method)

    @property
    def method(self) -> Method:
        return self.matcher.method

    def calculate(
        self,
        lots: Iterable[Lot],
        current_price: DecimalLike,
        account: str = "",
        asset_identifier: str = "",
        asset_symbol: str = "",
    ) -> PnLReport:
        """
        PnL of a single asset.

        Args:
            lots: buy and sell lots, in any order
            current_price: market price used to value the open remainder
            account, asset_identifier, asset_symbol: carried into the report and export

        Raises:
            EmptyLotSet: no lots supplied
            InvalidNumberFormat: current_price is not a decimal
        """
        price = parse_decimal(current_price, "current_price")
        result = self.matcher.match(lots)
        valuation = value_open_lots(result.buys, price)

        logger.debug(
            "%s %s: realized=%s unrealized=%s open=%s (%d matches)",
            self.method.value, asset_symbol or asset_identifier or "<asset>",
            result.realized_pnl, valuation.unrealized_pnl, valuation.open_quantity, len(result.matches),
        )
        return PnLReport(
            method=self.method,
            realized_pnl=result.realized_pnl,
            unrealized_pnl=valuation.unrealized_pnl,
            total_pnl=add(result.realized_pnl, valuation.unrealized_pnl),
            total_cost_basis=valuation.total_cost_basis,
            current_value=valuation.current_value,
            open_quantity=valuation.open_quantity,
            current_price=price,
            lots=result.buys,
            sells=result.sells,
            matches=result.matches,
            account=account or "",
            asset_identifier=asset_identifier or "",
            asset_symbol=asset_symbol or "",
        )

    def calculate_portfolio(
        self,
        lots_by_asset: Mapping[str, Sequence[Lot]],
        prices: Mapping[str, DecimalLike],
        account: str = "",
        symbols: Optional[Mapping[str, str]] = None,
    ) -> PortfolioReport:
        """
        Run ``calculate`` once per asset and collect the results.

        An asset missing from *prices* is valued at zero. Any failure for any
        asset aborts the whole run.
        """
        symbols = symbols or {}
        portfolio = PortfolioReport(method=self.method, account=account or "")
        for asset, lots in lots_by_asset.items():
            if asset in prices:
                price = prices[asset]
            else:
                logger.warning("No current price for asset %s, valuing open quantity at 0", asset)
                price = "0"
            portfolio.reports[asset] = self.calculate(
                lots,
                price,
                account=account,
                asset_identifier=asset,
                asset_symbol=symbols.get(asset, ""),
            )
        return portfolio

    @staticmethod
    def export_rows(report: Union[PnLReport, PortfolioReport]) -> List[ExportRow]:
        if isinstance(report, PortfolioReport):
            return report.export_rows()
        return report_export_rows(report)


def calculate_pnl(
    lots: Iterable[Lot],
    current_price: DecimalLike,
    method: Union[Method, str] = Method.FIFO,
) -> PnLReport:
    return PnLCalculator(method).calculate(lots, current_price)
