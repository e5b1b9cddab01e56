import pytest

from rfid_attendance.config import Config
from rfid_attendance.db import init_db, open_connection


@pytest.fixture
def cfg():
    return Config(db_url="sqlite://", poll_interval=0, scan_delay=0)


@pytest.fixture
def conn(cfg):
    with open_connection(cfg) as c:
        init_db(c)
        yield c
