from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional

import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import numpy as np
import pandas as pd

from .models import ExportRow
from .results import PortfolioReport
from .types import LotKind


def _style_axes(ax, title: str, xlabel: str = "Date", ylabel: str = "PnL"):
    ax.set_title(title, fontsize=14, fontweight='bold', pad=20)
    ax.set_xlabel(xlabel, fontsize=12)
    ax.set_ylabel(ylabel, fontsize=12)
    ax.grid(True, alpha=0.3, linestyle="-", linewidth=0.5)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.spines['left'].set_linewidth(0.5)
    ax.spines['bottom'].set_linewidth(0.5)


def plot_pnl_by_asset(portfolio: PortfolioReport, show: bool = False, save_path: Optional[str] = None):
    """Grouped bars of realized and unrealized PnL per asset."""
    df = portfolio.to_dataframe()
    fig, ax = plt.subplots(figsize=(12, 6))

    x = np.arange(len(df))
    width = 0.4
    ax.bar(x - width / 2, df["realized_pnl"], width=width, label="Realized",
           color='#2E8B57', alpha=0.8, edgecolor='black', linewidth=0.3)
    ax.bar(x + width / 2, df["unrealized_pnl"], width=width, label="Unrealized",
           color='#4169E1', alpha=0.8, edgecolor='black', linewidth=0.3)
    ax.axhline(0, color='black', linewidth=0.8)
    ax.set_xticks(x)
    ax.set_xticklabels(df["asset_symbol"], rotation=45, ha="right")

    _style_axes(ax, f"PnL by Asset ({portfolio.method.value})", xlabel="Asset")
    ax.legend(frameon=True, fancybox=True, shadow=True)

    if save_path:
        fig.savefig(f"{save_path}_by_asset.png", bbox_inches="tight", dpi=150)
    if show:
        plt.show()
    return fig


def plot_realized_over_time(rows: Iterable[ExportRow], show: bool = False, save_path: Optional[str] = None):
    """Cumulative realized PnL, stepped at each sell."""
    sells = [r for r in rows if LotKind.parse(r.kind) == LotKind.SELL]
    df = pd.DataFrame({
        "ts": [r.timestamp for r in sells],
        "realized": [float(r.realized_pnl) for r in sells],
    })
    if not df.empty:
        df = df.sort_values("ts", kind="mergesort")
        df["cumulative"] = df["realized"].cumsum()
    else:
        df["cumulative"] = pd.Series(dtype=float)

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.step(df["ts"], df["cumulative"], where="post", label="Realized (cumulative)",
            linewidth=2.5, color='#2E8B57')
    ax.fill_between(df["ts"], df["cumulative"], step="post", alpha=0.3, color='#2E8B57')
    _style_axes(ax, "Realized PnL")
    ax.xaxis.set_major_locator(mdates.AutoDateLocator())
    ax.xaxis.set_major_formatter(mdates.ConciseDateFormatter(ax.xaxis.get_major_locator()))
    ax.legend(frameon=True, fancybox=True, shadow=True)

    if save_path:
        out = Path(f"{save_path}_realized.png")
        fig.savefig(out, bbox_inches="tight", dpi=150)
    if show:
        plt.show()
    return fig
