import os

from rfid_attendance.config import Config


def test_defaults_match_reader_station(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in [k for k in os.environ if k.startswith("APP_")]:
        monkeypatch.delenv(name, raising=False)
    cfg = Config.from_env()
    url = cfg.sqlalchemy_url
    assert url.drivername == "mysql+pymysql"
    assert url.host == "127.0.0.1"
    assert url.port == 3307
    assert url.username == "root"
    assert url.database == "rfid_database"
    assert cfg.poll_interval == 0.1
    assert cfg.scan_delay == 1.0
    assert cfg.log_level == "INFO"


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APP_DB_HOST", "db.local")
    monkeypatch.setenv("APP_DB_PORT", "3306")
    monkeypatch.setenv("APP_SCAN_DELAY", "2.5")
    monkeypatch.setenv("APP_LOG_LEVEL", "debug")
    cfg = Config.from_env()
    assert cfg.sqlalchemy_url.host == "db.local"
    assert cfg.sqlalchemy_url.port == 3306
    assert cfg.scan_delay == 2.5
    assert cfg.log_level == "DEBUG"


def test_dotenv_file_is_read(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("APP_DB_URL", raising=False)
    (tmp_path / ".env.local").write_text("APP_DB_URL=sqlite:///./taps.db\n")
    try:
        cfg = Config.from_env()
        assert cfg.sqlalchemy_url == "sqlite:///./taps.db"
    finally:
        monkeypatch.delenv("APP_DB_URL", raising=False)


def test_blank_port_falls_back_to_default(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("APP_DB_PORT", "")
    monkeypatch.setenv("APP_SCAN_DELAY", "")
    cfg = Config.from_env()
    assert cfg.db_port == 3307
    assert cfg.scan_delay == 1.0
