import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import Config
from .exceptions import DatabaseConnectError

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    UID VARCHAR(32) NOT NULL PRIMARY KEY,
    username VARCHAR(255),
    tap_count INTEGER NOT NULL DEFAULT 0,
    last_scan_time DATETIME
)
"""


def create_db_engine(cfg: Config) -> Engine:
    return create_engine(cfg.sqlalchemy_url, pool_pre_ping=True, future=True)


@contextmanager
def open_connection(cfg: Config) -> Iterator[Connection]:
    """Hold one connection for the lifetime of the block.

    A failure to connect is raised as DatabaseConnectError; the connection and
    its engine are always released on exit.
    """
    engine = create_db_engine(cfg)
    try:
        try:
            conn = engine.connect()
        except SQLAlchemyError as e:
            raise DatabaseConnectError(f"Could not connect to database: {e}") from e
        logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))
        try:
            yield conn
        finally:
            conn.close()
            logger.info("Database connection closed")
    finally:
        engine.dispose()


def init_db(conn: Connection) -> None:
    conn.execute(text(SCHEMA))
    conn.commit()
