# lotpnl/results.py
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from .decimals import ZERO, add, compare, format_decimal, total
from .models import ExportRow, PnLReport
from .types import LotKind, Method


def report_export_rows(report: PnLReport) -> List[ExportRow]:
    """Export rows for every lot of *report*, buys and sells, oldest first.

    Realized PnL is attributed to the sell row that realized it; buy rows
    carry zero, so the column sums to ``report.realized_pnl``.
    """
    by_sell: Dict[int, Decimal] = {}
    for m in report.matches:
        by_sell[id(m.sell)] = add(by_sell.get(id(m.sell), ZERO), m.realized_pnl)

    lots = sorted(report.lots + report.sells, key=lambda l: (l.timestamp, l.block_ordinal))
    rows: List[ExportRow] = []
    for lot in lots:
        rows.append(ExportRow(
            account=report.account,
            asset_symbol=report.asset_symbol,
            asset_identifier=report.asset_identifier,
            reference_id=lot.reference_id,
            kind=lot.kind,
            quantity=lot.quantity,
            unit_price=lot.unit_price,
            remaining_quantity=lot.remaining_quantity,
            realized_pnl=by_sell.get(id(lot), ZERO) if lot.kind == LotKind.SELL else ZERO,
            timestamp=lot.timestamp,
            block_ordinal=lot.block_ordinal,
        ))
    return rows


@dataclass
class PortfolioReport:
    """
    Per-asset PnL reports for one account plus portfolio-level sums.

    reports: {asset_identifier: PnLReport}

    Realized, unrealized, total, cost basis and current value are summed
    across assets. Open quantity is not: units differ per asset, so it is
    only available from the individual reports.
    """
    method: Method
    reports: Dict[str, PnLReport] = field(default_factory=dict)
    account: str = ""

    # -------- portfolio sums --------
    @property
    def realized_pnl(self) -> Decimal:
        return total(r.realized_pnl for r in self.reports.values())

    @property
    def unrealized_pnl(self) -> Decimal:
        return total(r.unrealized_pnl for r in self.reports.values())

    @property
    def total_pnl(self) -> Decimal:
        return total(r.total_pnl for r in self.reports.values())

    @property
    def total_cost_basis(self) -> Decimal:
        return total(r.total_cost_basis for r in self.reports.values())

    @property
    def current_value(self) -> Decimal:
        return total(r.current_value for r in self.reports.values())

    def open_quantity_by_asset(self) -> Dict[str, Decimal]:
        return {asset: r.open_quantity for asset, r in self.reports.items()}

    # -------- trade statistics --------
    def _realized_deltas(self) -> List[Decimal]:
        """Realized PnL per sell lot that matched anything."""
        out: List[Decimal] = []
        for r in self.reports.values():
            by_sell: Dict[int, Decimal] = {}
            for m in r.matches:
                by_sell[id(m.sell)] = add(by_sell.get(id(m.sell), ZERO), m.realized_pnl)
            out.extend(by_sell.values())
        return out

    def win_rate(self) -> float:
        """Fraction of sells that realized a profit."""
        d = self._realized_deltas()
        if not d:
            return 0.0
        return sum(1 for x in d if compare(x, ZERO) > 0) / len(d)

    def profit_factor(self) -> float:
        """Sum of wins / abs(sum of losses)."""
        d = self._realized_deltas()
        if not d:
            return 0.0
        wins = float(total(x for x in d if compare(x, ZERO) > 0))
        losses = abs(float(total(x for x in d if compare(x, ZERO) < 0)))
        if losses == 0.0:
            return float("inf") if wins > 0 else 0.0
        return wins / losses

    def summary(self) -> dict:
        return {
            "method": self.method.value,
            "realized_pnl": self.realized_pnl,
            "unrealized_pnl": self.unrealized_pnl,
            "total_pnl": self.total_pnl,
            "total_cost_basis": self.total_cost_basis,
            "current_value": self.current_value,
        }

    # -------- exports --------
    def export_rows(self) -> List[ExportRow]:
        rows: List[ExportRow] = []
        for r in self.reports.values():
            rows.extend(report_export_rows(r))
        return rows

    def to_dataframe(self) -> pd.DataFrame:
        """One row per asset; floats, for display and plotting only."""
        rows = []
        for asset, r in self.reports.items():
            rows.append({
                "asset_identifier": asset,
                "asset_symbol": r.asset_symbol or asset,
                "realized_pnl": float(r.realized_pnl),
                "unrealized_pnl": float(r.unrealized_pnl),
                "total_pnl": float(r.total_pnl),
                "total_cost_basis": float(r.total_cost_basis),
                "current_value": float(r.current_value),
                "open_quantity": float(r.open_quantity),
                "current_price": float(r.current_price),
            })
        return pd.DataFrame(rows, columns=[
            "asset_identifier", "asset_symbol", "realized_pnl", "unrealized_pnl", "total_pnl",
            "total_cost_basis", "current_value", "open_quantity", "current_price",
        ])

    # -------- reporting --------
    def report_string(self, top_n: Optional[int] = None) -> str:
        pairs = sorted(
            self.reports.values(),
            key=lambda r: abs(r.total_pnl),
            reverse=True,
        )
        if top_n is not None:
            pairs = pairs[:top_n]

        labels = [r.asset_symbol or r.asset_identifier for r in pairs]
        sym_w = max([len("Asset")] + [len(x) for x in labels])
        num_w = 16
        width = sym_w + num_w * 4 + 8

        lines = []
        lines.append(f"PnL Report ({self.method.value})" + (f" for {self.account}" if self.account else ""))
        lines.append("=" * width)
        lines.append(f"Realized PnL:     {float(self.realized_pnl):,.2f}")
        lines.append(f"Unrealized PnL:   {float(self.unrealized_pnl):,.2f}")
        lines.append(f"Total PnL:        {float(self.total_pnl):,.2f}")
        lines.append(f"Cost Basis:       {float(self.total_cost_basis):,.2f}")
        lines.append(f"Current Value:    {float(self.current_value):,.2f}")
        lines.append("")
        lines.append("Breakdown by Asset:")
        lines.append(
            f"{'Asset'.ljust(sym_w)}  {'Realized'.rjust(num_w)}  {'Unrealized'.rjust(num_w)}"
            f"  {'Total'.rjust(num_w)}  {'Open Qty'.rjust(num_w)}"
        )
        lines.append("-" * width)
        for label, r in zip(labels, pairs):
            lines.append(
                f"{label.ljust(sym_w)}  {float(r.realized_pnl):>{num_w},.2f}  {float(r.unrealized_pnl):>{num_w},.2f}"
                f"  {float(r.total_pnl):>{num_w},.2f}  {format_decimal(r.open_quantity).rjust(num_w)}"
            )
        lines.append("")
        lines.append(f"Win-Rate: {self.win_rate() * 100:,.2f}%")
        lines.append(f"Profit Factor: {self.profit_factor():,.2f}")
        lines.append("=" * width)
        return "\n".join(lines)
