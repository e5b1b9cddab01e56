from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Row


def find_user(conn: Connection, uid: str) -> Optional[Row]:
    return conn.execute(
        text("SELECT UID, tap_count, username FROM users WHERE UID = :uid"),
        {"uid": uid},
    ).first()


def record_tap(conn: Connection, uid: str, tap_count: int) -> None:
    conn.execute(
        text(
            "UPDATE users SET tap_count = :tap_count, last_scan_time = CURRENT_TIMESTAMP WHERE UID = :uid"
        ),
        {"tap_count": tap_count, "uid": uid},
    )


def insert_user(conn: Connection, uid: str) -> None:
    conn.execute(
        text(
            "INSERT INTO users (UID, tap_count, last_scan_time) VALUES (:uid, 1, CURRENT_TIMESTAMP)"
        ),
        {"uid": uid},
    )
