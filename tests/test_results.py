from __future__ import annotations

import matplotlib.pyplot as plt
import pytest

from lotpnl import Lot, PnLCalculator
from lotpnl.viz import plot_pnl_by_asset, plot_realized_over_time

from conftest import at


@pytest.fixture(name="portfolio")
def portfolio_fixture():
    lots_by_asset = {
        "A": [Lot.buy("10", "1", at(0)), Lot.sell("4", "2", at(1)), Lot.sell("4", "0.5", at(2))],
        "B": [Lot.buy("1", "100", at(0)), Lot.sell("1", "130", at(3))],
    }
    return PnLCalculator("FIFO").calculate_portfolio(
        lots_by_asset, {"A": "1.5", "B": "120"}, account="0xabc", symbols={"A": "AAA"},
    )


def test_trade_statistics(portfolio):
    # sells realize +4, -2 and +30
    assert portfolio.win_rate() == pytest.approx(2 / 3)
    assert portfolio.profit_factor() == pytest.approx(34 / 2)


def test_summary_and_dataframe(portfolio):
    s = portfolio.summary()
    assert s["method"] == "FIFO"
    assert s["realized_pnl"] == 32
    df = portfolio.to_dataframe()
    assert list(df["asset_symbol"]) == ["AAA", "B"]
    assert df.loc[0, "open_quantity"] == 2.0
    assert df.loc[1, "realized_pnl"] == 30.0


def test_report_string(portfolio):
    text = portfolio.report_string()
    assert text.startswith("PnL Report (FIFO) for 0xabc")
    assert "Realized PnL:     32.00" in text
    assert "AAA" in text
    assert "Win-Rate: 66.67%" in text


def test_empty_portfolio_statistics():
    from lotpnl import Method, PortfolioReport

    empty = PortfolioReport(method=Method.LIFO)
    assert empty.realized_pnl == 0
    assert empty.win_rate() == 0.0
    assert empty.profit_factor() == 0.0
    assert empty.to_dataframe().empty


def test_charts_are_saved(tmp_path, portfolio):
    prefix = str(tmp_path / "pnl")
    fig1 = plot_pnl_by_asset(portfolio, save_path=prefix)
    fig2 = plot_realized_over_time(portfolio.export_rows(), save_path=prefix)
    assert (tmp_path / "pnl_by_asset.png").exists()
    assert (tmp_path / "pnl_realized.png").exists()
    plt.close(fig1)
    plt.close(fig2)
