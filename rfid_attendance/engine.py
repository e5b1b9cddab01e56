import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .models import find_user, insert_user, record_tap
from .reader_adapter import ReaderAdapter, uid_to_hex

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    NO_CARD = "no_card"
    UPDATED = "updated"
    INSERTED = "inserted"
    FAILED = "failed"


@dataclass
class ScanResult:
    status: ScanStatus
    uid: Optional[str] = None
    tap_count: Optional[int] = None
    username: Optional[str] = None
    message: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status != ScanStatus.FAILED


def greeting_for(tap_count: int, username: Optional[str]) -> str:
    # even count means the holder is tapping out
    if tap_count % 2 == 0:
        return f"Goodbye {username or ''}"
    return f"Hello {username or ''}"


class TapEngine:
    INSERTED_MESSAGE = "UID inserted into database."

    def __init__(
        self,
        conn: Connection,
        reader: Optional[ReaderAdapter] = None,
        poll_interval: float = 0.1,
        scan_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.conn = conn
        self.reader = reader
        self.poll_interval = poll_interval
        self.scan_delay = scan_delay
        self._sleep = sleep

    def process_uid(self, uid: str) -> ScanResult:
        try:
            row = find_user(self.conn, uid)
            if row is not None:
                tap_count = row.tap_count + 1
                record_tap(self.conn, uid, tap_count)
                self.conn.commit()
                return ScanResult(
                    ScanStatus.UPDATED,
                    uid=uid,
                    tap_count=tap_count,
                    username=row.username,
                    message=greeting_for(tap_count, row.username),
                )

            insert_user(self.conn, uid)
            self.conn.commit()
            return ScanResult(
                ScanStatus.INSERTED,
                uid=uid,
                tap_count=1,
                message=self.INSERTED_MESSAGE,
            )
        except SQLAlchemyError as e:
            try:
                self.conn.rollback()
            except SQLAlchemyError:
                logger.exception("Rollback failed for UID %s", uid)
            return ScanResult(ScanStatus.FAILED, uid=uid, error=e)

    def poll_once(self) -> ScanResult:
        if self.reader is None:
            raise RuntimeError("TapEngine has no reader attached")
        if not self.reader.is_new_card_present() or not self.reader.read_card_serial():
            return ScanResult(ScanStatus.NO_CARD)

        uid = uid_to_hex(self.reader.uid)
        print(f"UID: {uid}")
        return self.process_uid(uid)

    def run(self, max_iterations: Optional[int] = None) -> int:
        """Poll the reader until interrupted.

        Returns the number of taps that reached the database, which is only
        meaningful when ``max_iterations`` bounds the loop.
        """
        taps = 0
        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            iterations += 1
            result = self.poll_once()

            if result.status == ScanStatus.NO_CARD:
                self._sleep(self.poll_interval)
                continue

            if not result.ok:
                logger.error("SQL error for UID %s: %s", result.uid, result.error)
            else:
                taps += 1
                print(result.message)
            # debounce: a card left on the reader will still be counted again
            self._sleep(self.scan_delay)
        return taps
