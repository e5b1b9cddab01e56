from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Connection


@dataclass
class UserRow:
    uid: str
    username: Optional[str]
    tap_count: int
    last_scan_time: Optional[Union[datetime, str]]


def presence_label(tap_count: int) -> str:
    # odd count: tapped in and not yet out
    return "IN" if tap_count % 2 == 1 else "OUT"


def format_last_scan(value: Optional[Union[datetime, str]]) -> str:
    if value is None:
        return "—"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    # sqlite hands back the raw CURRENT_TIMESTAMP text
    return str(value)


def fetch_users(conn: Connection, limit: int = 1000) -> List[UserRow]:
    sql = """
        SELECT UID, username, tap_count, last_scan_time
        FROM users
        ORDER BY last_scan_time DESC, UID
        LIMIT :limit
    """
    out: List[UserRow] = []
    for r in conn.execute(text(sql), {"limit": limit}).mappings():
        out.append(
            UserRow(
                uid=r["UID"],
                username=r["username"],
                tap_count=r["tap_count"],
                last_scan_time=r["last_scan_time"],
            )
        )
    # read-only; end the implicit transaction so later reads see new scans
    conn.rollback()
    return out


def set_username(conn: Connection, uid: str, username: Optional[str]) -> bool:
    """Set the display name for a UID. Returns False when no such row exists."""
    result = conn.execute(
        text("UPDATE users SET username = :username WHERE UID = :uid"),
        {"username": (username or "").strip() or None, "uid": uid},
    )
    conn.commit()
    return result.rowcount > 0
