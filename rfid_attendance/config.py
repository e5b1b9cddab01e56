import os

from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    return int(v) if v else default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    return float(v) if v else default


@dataclass
class Config:
    db_url: Optional[str] = None  # overrides the discrete fields when set
    db_host: str = "127.0.0.1"
    db_port: int = 3307
    db_user: str = "root"
    db_password: str = "root"
    db_name: str = "rfid_database"
    poll_interval: float = 0.1
    scan_delay: float = 1.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str = ".env.local") -> "Config":
        load_dotenv(dotenv_path)
        return cls(
            db_url=os.getenv("APP_DB_URL") or None,
            db_host=os.getenv("APP_DB_HOST", cls.db_host),
            db_port=_env_int("APP_DB_PORT", cls.db_port),
            db_user=os.getenv("APP_DB_USER", cls.db_user),
            db_password=os.getenv("APP_DB_PASSWORD", cls.db_password),
            db_name=os.getenv("APP_DB_NAME", cls.db_name),
            poll_interval=_env_float("APP_POLL_INTERVAL", cls.poll_interval),
            scan_delay=_env_float("APP_SCAN_DELAY", cls.scan_delay),
            log_level=os.getenv("APP_LOG_LEVEL", cls.log_level).upper(),
        )

    @property
    def sqlalchemy_url(self):
        if self.db_url:
            return self.db_url
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
