from __future__ import annotations
import csv
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional, Union

import logging

from .models import ExportRow

logger = logging.getLogger("lotpnl.exporter")

HEADER = (
    "account",
    "asset_symbol",
    "asset_identifier",
    "reference_id",
    "kind",
    "quantity",
    "unit_price",
    "remaining_quantity",
    "realized_pnl",
    "timestamp",
    "block_ordinal",
)


class CSVExporter:
    """Writes export rows as CSV, to an open sink or to a temporary file.

    Rows are written in the order supplied. Fields containing the delimiter,
    quote character or line breaks are quoted per standard CSV rules.
    """

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None, delimiter: str = ",") -> None:
        self.temp_dir = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
        self.delimiter = delimiter

    # --- stream mode ---
    def write(self, sink: IO[str], rows: Iterable[ExportRow]) -> int:
        """Write the header and *rows* into *sink*; returns the number of data rows."""
        writer = csv.writer(sink, delimiter=self.delimiter, lineterminator="\n")
        writer.writerow(HEADER)
        n = 0
        for row in rows:
            writer.writerow(row.to_record())
            n += 1
        return n

    # --- artifact mode ---
    def export_to_file(self, rows: Iterable[ExportRow], account: str = "") -> Path:
        """Write *rows* to a new uniquely named file under ``temp_dir`` and return its path."""
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        prefix = f"pnl_export_{_safe_name(account[:8]) or 'all'}_{stamp}_"
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=".csv", dir=self.temp_dir)
        path = Path(name)
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                n = self.write(f, rows)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        logger.debug("Exported %d rows to %s", n, path)
        return path

    def cleanup_file(self, path: Union[str, Path]) -> None:
        Path(path).unlink()

    def schedule_cleanup(self, path: Union[str, Path], delay: Union[float, timedelta]) -> threading.Timer:
        """Best-effort removal of *path* after *delay*.

        The timer is a daemon: if the process exits first the file stays.
        Callers that need guaranteed cleanup should use ``exported_file``.
        """
        seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
        timer = threading.Timer(seconds, self._cleanup_quietly, args=(Path(path),))
        timer.daemon = True
        timer.start()
        return timer

    def _cleanup_quietly(self, path: Path) -> None:
        try:
            self.cleanup_file(path)
        except FileNotFoundError:
            logger.debug("Scheduled cleanup: %s already removed", path)
        except OSError as e:
            logger.warning("Scheduled cleanup of %s failed: %s", path, e)

    @contextmanager
    def exported_file(self, rows: Iterable[ExportRow], account: str = "") -> Iterator[Path]:
        """Export to a temporary file that is removed when the block exits."""
        path = self.export_to_file(rows, account)
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)


def _safe_name(s: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in s)
