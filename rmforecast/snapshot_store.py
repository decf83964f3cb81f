from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from rmforecast.load_data import read_reservations
from rmforecast.models import ReservationRecord

logger = logging.getLogger(__name__)


def _stat_mtime_ns(path: Path) -> int:
    return int(path.stat().st_mtime_ns)


@dataclass
class SnapshotStore:
    """The single uploaded reservation snapshot, overwritten on every upload.

    Readers get an immutable tuple of records parsed from the file; the parse
    is cached until the file's mtime changes. Uploads land in a temporary file
    that atomically replaces the snapshot, so a forecast that already took its
    tuple is never affected by a concurrent upload.
    """

    path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _records: Optional[Tuple[ReservationRecord, ...]] = field(default=None, repr=False)
    _mtime_ns: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def exists(self) -> bool:
        return self.path.exists()

    def write(self, raw_text: str) -> int:
        if not raw_text or not raw_text.strip():
            raise ValueError("Upload body is empty.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = raw_text.encode("utf-8")
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), suffix=".csv.tmp")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
            self._records = None
            self._mtime_ns = 0
        logger.info("snapshot uploaded", extra={"bytes": len(payload)})
        return len(payload)

    def records(self) -> Tuple[ReservationRecord, ...]:
        if not self.path.exists():
            raise FileNotFoundError(
                f"No reservation snapshot uploaded yet (expected {self.path})."
            )
        with self._lock:
            mtime = _stat_mtime_ns(self.path)
            if self._records is None or mtime != self._mtime_ns:
                self._records = tuple(read_reservations(self.path))
                self._mtime_ns = mtime
            return self._records
