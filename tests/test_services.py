from datetime import datetime

from rfid_attendance.engine import TapEngine
from rfid_attendance.services import (
    fetch_users,
    format_last_scan,
    presence_label,
    set_username,
)


def test_presence_label():
    assert presence_label(0) == "OUT"
    assert presence_label(1) == "IN"
    assert presence_label(2) == "OUT"


def test_format_last_scan():
    assert format_last_scan(None) == "—"
    assert format_last_scan(datetime(2024, 3, 1, 8, 5, 9)) == "2024-03-01 08:05:09"
    assert format_last_scan("2024-03-01 08:05:09") == "2024-03-01 08:05:09"


def test_fetch_users_lists_scanned_tags(conn):
    eng = TapEngine(conn)
    eng.process_uid("AA")
    eng.process_uid("BB")
    eng.process_uid("BB")

    rows = {r.uid: r for r in fetch_users(conn)}
    assert set(rows) == {"AA", "BB"}
    assert rows["BB"].tap_count == 2
    assert rows["AA"].username is None
    assert rows["AA"].last_scan_time is not None


def test_set_username(conn):
    TapEngine(conn).process_uid("AA")
    assert set_username(conn, "AA", "  carol ")
    assert fetch_users(conn)[0].username == "carol"
    assert set_username(conn, "AA", "")
    assert fetch_users(conn)[0].username is None


def test_set_username_unknown_uid(conn):
    assert not set_username(conn, "FFFF", "nobody")
