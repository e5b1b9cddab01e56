import pytest
from sqlalchemy import text

from rfid_attendance.config import Config
from rfid_attendance.db import init_db, open_connection
from rfid_attendance.exceptions import DatabaseConnectError


def test_init_db_is_idempotent(conn):
    init_db(conn)
    assert conn.execute(text("SELECT COUNT(*) FROM users")).scalar_one() == 0


def test_unreachable_database(tmp_path):
    cfg = Config(db_url=f"sqlite:///{tmp_path / 'no' / 'such' / 'dir.db'}")
    with pytest.raises(DatabaseConnectError):
        with open_connection(cfg):
            pass


def test_connection_closed_on_exit(cfg):
    with open_connection(cfg) as conn:
        init_db(conn)
    assert conn.closed
