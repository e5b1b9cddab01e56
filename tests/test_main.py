import pytest

from rfid_attendance import __main__ as entry
from rfid_attendance.config import Config
from rfid_attendance.db import open_connection
from rfid_attendance.exceptions import ReaderInitError
from rfid_attendance.models import find_user


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    db_url = f"sqlite:///{tmp_path / 'taps.db'}"
    monkeypatch.setenv("APP_DB_URL", db_url)
    monkeypatch.setenv("APP_POLL_INTERVAL", "0")
    monkeypatch.setenv("APP_SCAN_DELAY", "0")
    return Config(db_url=db_url)


def test_mock_cli_loop_counts_taps(env, monkeypatch, capsys):
    answers = iter(["041AFF", "nothex", "041AFF"])

    def fake_input(prompt=""):
        try:
            return next(answers)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)

    with pytest.raises(SystemExit) as exc:
        entry.main(["--cli", "--mock"])
    assert exc.value.code == 0

    out = capsys.readouterr().out
    assert "UID inserted into database." in out
    assert "Invalid hex" in out
    assert "Goodbye" in out
    with open_connection(env) as conn:
        assert find_user(conn, "041AFF").tap_count == 2


def test_reader_init_failure_exits_nonzero(env, monkeypatch):
    def broken():
        raise ReaderInitError("no SPI")

    monkeypatch.setattr(entry, "RealReader", broken)
    with pytest.raises(SystemExit) as exc:
        entry.main(["--cli"])
    assert exc.value.code == 1


def test_connection_failure_exits_nonzero(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APP_DB_URL", f"sqlite:///{tmp_path / 'missing' / 'taps.db'}")
    with pytest.raises(SystemExit) as exc:
        entry.main(["--cli", "--mock"])
    assert exc.value.code == 1


def test_unknown_log_level_falls_back_to_info(capsys):
    entry.setup_logging("CHATTY")
    assert "Unknown log level 'CHATTY'" in capsys.readouterr().err
