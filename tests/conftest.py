"""Test configuration and fixtures."""

import matplotlib
matplotlib.use("Agg")

from datetime import datetime, timedelta, timezone

import pytest

from lotpnl import Lot

T0 = datetime(2023, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def at(days: int = 0, **kw) -> datetime:
    return T0 + timedelta(days=days, **kw)


@pytest.fixture(name="scenario_a")
def scenario_a_fixture():
    """Buy 100 @ 10.00, sell 50 @ 15.00."""
    return [
        Lot.buy("100", "10.00", at(0), reference_id="0xb1", block_ordinal=100),
        Lot.sell("50", "15.00", at(1), reference_id="0xs1", block_ordinal=200),
    ]


@pytest.fixture(name="scenario_b")
def scenario_b_fixture():
    """Two buys at different prices, then a partial sell."""
    return [
        Lot.buy("1.0", "1000", at(0), reference_id="0xb1", block_ordinal=1),
        Lot.buy("1.0", "2000", at(1), reference_id="0xb2", block_ordinal=2),
        Lot.sell("1.0", "1500", at(2), reference_id="0xs1", block_ordinal=3),
    ]


@pytest.fixture(name="scenario_c")
def scenario_c_fixture():
    """Sell more than was ever bought."""
    return [
        Lot.buy("100", "10.00", at(0), reference_id="0xb1", block_ordinal=1),
        Lot.sell("150", "15.00", at(1), reference_id="0xs1", block_ordinal=2),
    ]


@pytest.fixture(name="lots_csv")
def lots_csv_fixture(tmp_path):
    """Lots of two assets in the reader's CSV format."""
    path = tmp_path / "lots.csv"
    path.write_text(
        "asset_identifier,asset_symbol,kind,quantity,unit_price,timestamp,reference_id,block_ordinal\n"
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2,WETH,buy,1.5,2000.00,2023-01-15 12:00:00,0xaa01,12345\n"
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2,WETH,sell,0.5,2200.00,2023-01-20 14:30:00,0xaa02,12567\n"
        "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599,WBTC,buy,0.1,45000.00,2023-01-16 09:00:00,0xbb01,12400\n"
        "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599,WBTC,BUY,0.2,40000.00,2023-01-18 09:00:00,0xbb02,12500\n"
        "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599,WBTC,Sell,0.15,50000.00,2023-01-25 09:00:00,0xbb03,12900\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(name="prices_json")
def prices_json_fixture(tmp_path):
    path = tmp_path / "prices.json"
    path.write_text(
        '{"0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": "2500.00",'
        ' "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599": 48000.5}',
        encoding="utf-8",
    )
    return path
