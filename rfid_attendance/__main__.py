# entry point for both the reader loop and the scan window

import argparse
import logging
import sys

from .config import Config
from .db import init_db, open_connection
from .engine import TapEngine
from .exceptions import TapCounterError
from .reader_adapter import MockReader, RealReader

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    if not isinstance(logging.getLevelName(level), int):
        print(f"Unknown log level {level!r}, using INFO", file=sys.stderr)
        level = "INFO"
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _prompt_uid() -> str:
    while True:
        text = input("[MOCK]> UID hex (blank to skip): ").strip()
        try:
            bytes.fromhex(text)
            return text
        except ValueError:
            print("[MOCK]> Invalid hex. Try again.")


def run_reader(cfg: Config, mock: bool = False) -> None:
    reader = MockReader(source=_prompt_uid) if mock else RealReader()
    try:
        with open_connection(cfg) as conn:
            init_db(conn)
            engine = TapEngine(
                conn,
                reader,
                poll_interval=cfg.poll_interval,
                scan_delay=cfg.scan_delay,
            )
            print("Place your card on the reader...")
            engine.run()
    finally:
        reader.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="RFID tap in/tap out counter")
    parser.add_argument("--cli", action="store_true", help="Run the reader loop")
    parser.add_argument("--mock", action="store_true", help="Use the mock reader")
    args = parser.parse_args(argv)

    cfg = Config.from_env()
    setup_logging(cfg.log_level)

    try:
        if args.cli:
            run_reader(cfg, mock=args.mock)
        else:
            # imported late so the reader loop runs without Qt installed
            from .ui_main import run_ui

            run_ui(cfg, mock=args.mock)
    except TapCounterError as e:
        logger.error("%s", e)
        raise SystemExit(1)
    except (KeyboardInterrupt, EOFError):
        print("Exiting...")
        raise SystemExit(0)


def reader_main():
    main(["--cli", *sys.argv[1:]])


if __name__ == "__main__":
    main()
