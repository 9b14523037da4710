from __future__ import annotations

import csv
import io
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from lotpnl import CSVExporter, ExportRow, LotKind, read_export
from lotpnl.exporter import HEADER

WALLET = "0x1234567890123456789012345678901234567890"


def _row(**kw) -> ExportRow:
    base = dict(
        account=WALLET,
        asset_symbol="ETH",
        asset_identifier="0x0000000000000000000000000000000000000000",
        reference_id="0xabcdef1234567890",
        kind=LotKind.BUY,
        quantity=Decimal("1.5"),
        unit_price=Decimal("2000.00"),
        remaining_quantity=Decimal("1.5"),
        realized_pnl=Decimal("0"),
        timestamp=datetime(2023, 1, 15, 12, 0, 0, tzinfo=timezone.utc),
        block_ordinal=12345,
    )
    base.update(kw)
    return ExportRow(**base)


@pytest.fixture(name="rows")
def rows_fixture():
    return [
        _row(),
        _row(
            reference_id="0x1234567890abcdef",
            kind=LotKind.SELL,
            quantity=Decimal("0.5"),
            unit_price=Decimal("2200.00"),
            remaining_quantity=Decimal("0"),
            realized_pnl=Decimal("100.00"),
            timestamp=datetime(2023, 1, 20, 14, 30, 0, tzinfo=timezone.utc),
            block_ordinal=12567,
        ),
    ]


def test_stream_writes_header_and_rows_in_order(rows):
    buf = io.StringIO()
    n = CSVExporter().write(buf, rows)
    lines = buf.getvalue().strip().split("\n")

    assert n == 2
    assert len(lines) == 3
    assert lines[0] == ",".join(HEADER)
    assert lines[1] == (
        f"{WALLET},ETH,0x0000000000000000000000000000000000000000,0xabcdef1234567890,"
        "buy,1.5,2000.00,1.5,0,2023-01-15 12:00:00,12345"
    )
    assert lines[2] == (
        f"{WALLET},ETH,0x0000000000000000000000000000000000000000,0x1234567890abcdef,"
        "sell,0.5,2200.00,0,100.00,2023-01-20 14:30:00,12567"
    )


def test_stream_with_no_rows_writes_header_only():
    buf = io.StringIO()
    assert CSVExporter().write(buf, []) == 0
    assert buf.getvalue() == ",".join(HEADER) + "\n"


def test_special_characters_round_trip():
    rows = [
        _row(asset_symbol='Token, "Inc"', reference_id="line1\nline2"),
        _row(asset_symbol="semi;colon", account="acct,with,commas"),
    ]
    buf = io.StringIO()
    CSVExporter().write(buf, rows)

    parsed = list(csv.reader(io.StringIO(buf.getvalue())))
    assert parsed[0] == list(HEADER)
    assert parsed[1:] == [r.to_record() for r in rows]
    assert parsed[1][1] == 'Token, "Inc"'
    assert parsed[1][3] == "line1\nline2"

    df = read_export(io.StringIO(buf.getvalue()))
    assert list(df.columns) == list(HEADER)
    assert df.loc[1, "account"] == "acct,with,commas"
    assert df.loc[0, "quantity"] == "1.5"
    assert df.loc[0, "unit_price"] == "2000.00"


def test_numbers_and_timestamps_are_plain_text():
    row = _row(
        quantity=Decimal("1E-18"),
        unit_price=Decimal("2.5E+3"),
        remaining_quantity=Decimal("1E-18"),
        timestamp=datetime(2023, 1, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2))),
    )
    rec = row.to_record()
    assert rec[5] == "0.000000000000000001"
    assert rec[6] == "2500"
    assert rec[9] == "2023-01-15 12:00:00"


def test_export_to_file(tmp_path, rows):
    exporter = CSVExporter(tmp_path)
    path = exporter.export_to_file(rows, "0x12345678")

    assert path.parent == tmp_path
    assert path.name.startswith("pnl_export_0x123456_")
    assert path.suffix == ".csv"
    content = path.read_text(encoding="utf-8")
    assert content.startswith("account,asset_symbol")
    assert f"{WALLET},ETH" in content


def test_export_file_names_are_unique(tmp_path, rows):
    exporter = CSVExporter(tmp_path)
    paths = {exporter.export_to_file(rows, WALLET) for _ in range(5)}
    assert len(paths) == 5


def test_failed_export_leaves_no_file(tmp_path, rows):
    def broken():
        yield rows[0]
        raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        CSVExporter(tmp_path).export_to_file(broken(), WALLET)
    assert list(tmp_path.iterdir()) == []


def test_cleanup_file(tmp_path, rows):
    exporter = CSVExporter(tmp_path)
    path = exporter.export_to_file(rows, WALLET)
    exporter.cleanup_file(path)
    assert not path.exists()
    with pytest.raises(FileNotFoundError):
        exporter.cleanup_file(path)


def test_schedule_cleanup_removes_file(tmp_path, rows):
    exporter = CSVExporter(tmp_path)
    path = exporter.export_to_file(rows, WALLET)
    timer = exporter.schedule_cleanup(path, timedelta(milliseconds=50))
    assert isinstance(timer, threading.Timer)
    assert timer.daemon
    timer.join(timeout=5)
    assert not path.exists()


def test_schedule_cleanup_tolerates_missing_file(tmp_path):
    timer = CSVExporter(tmp_path).schedule_cleanup(tmp_path / "gone.csv", 0)
    timer.join(timeout=5)
    assert not timer.is_alive()


def test_exported_file_is_removed_on_exit(tmp_path, rows):
    exporter = CSVExporter(tmp_path)
    with exporter.exported_file(rows, WALLET) as path:
        assert path.exists()
    assert not path.exists()

    with pytest.raises(RuntimeError):
        with exporter.exported_file(rows, WALLET) as path:
            raise RuntimeError("delivery failed")
    assert not path.exists()
