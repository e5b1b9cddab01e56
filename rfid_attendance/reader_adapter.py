from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Iterable, Optional, Union

from .exceptions import ReaderInitError

logger = logging.getLogger(__name__)


def uid_to_hex(uid: Iterable[int]) -> str:
    """Render tag identifier bytes as uppercase hex, two digits per byte."""
    out = []
    for b in uid:
        if not 0 <= b <= 0xFF:
            raise ValueError(f"UID byte out of range: {b!r}")
        out.append(f"{b:02X}")
    return "".join(out)


class ReaderAdapter:
    def is_new_card_present(self) -> bool:
        raise NotImplementedError

    def read_card_serial(self) -> bool:
        raise NotImplementedError

    @property
    def uid(self) -> bytes:
        raise NotImplementedError

    def close(self) -> None:
        pass


class RealReader(ReaderAdapter):
    def __init__(self):
        try:
            # Import here so desktop without hardware can still import module
            from mfrc522 import MFRC522  # type: ignore

            self._reader = MFRC522()
        except Exception as e:
            raise ReaderInitError(f"Failed to initialise MFRC522 reader: {e}") from e
        self._uid = b""
        logger.info("MFRC522 reader initialised")

    def is_new_card_present(self) -> bool:
        status, _tag_type = self._reader.MFRC522_Request(self._reader.PICC_REQIDL)
        return status == self._reader.MI_OK

    def read_card_serial(self) -> bool:
        status, data = self._reader.MFRC522_Anticoll()
        if status != self._reader.MI_OK:
            return False
        # last byte of the anticollision frame is the BCC checksum, not UID
        self._uid = bytes(data[:-1])
        return True

    @property
    def uid(self) -> bytes:
        return self._uid

    def close(self) -> None:
        self._reader.Close_MFRC522()
        logger.info("MFRC522 reader closed")


@dataclass
class MockState:
    pending: Deque[bytes] = field(default_factory=deque)
    last_uid: bytes = b""


class MockReader(ReaderAdapter):
    """A simple in-memory mock. Use set_next(uid) to simulate a tap.

    When `source` is given it is asked for a hex UID whenever the queue is
    empty; a blank answer means no card.
    """

    def __init__(
        self,
        state: MockState | None = None,
        source: Optional[Callable[[], str]] = None,
    ):
        self.state = state or MockState()
        self.source = source

    def set_next(self, uid: Union[bytes, bytearray, str]) -> None:
        if isinstance(uid, str):
            uid = bytes.fromhex(uid.strip())
        self.state.pending.append(bytes(uid))

    def is_new_card_present(self) -> bool:
        if not self.state.pending and self.source is not None:
            text = self.source().strip()
            if text:
                self.set_next(text)
        return bool(self.state.pending)

    def read_card_serial(self) -> bool:
        if not self.state.pending:
            return False
        self.state.last_uid = self.state.pending.popleft()
        return True

    @property
    def uid(self) -> bytes:
        return self.state.last_uid
