"""Main entry point for the Reserver application.

Loads configuration from the environment, logs in to the portal, requests the
Adobe license reservation, and exits with a status code for the stage that
failed (0 when everything succeeded).
"""

import argparse
from pathlib import Path
import sys

from loguru import logger

from kmutnb.reserver.config import Config
from kmutnb.reserver.config import read_environment
from kmutnb.reserver.error import ReserverError
from kmutnb.reserver.model import Outcome
from kmutnb.reserver.module.reserve import Reserve


def run() -> Outcome:
    """Load configuration and run the reservation once."""
    values = read_environment()

    # The file sink goes in first so configuration errors are logged to it too.
    log_dir = (values.get("LOG_DIR") or "").strip()
    if log_dir:
        logger.add(str(Path(log_dir) / "{time}.log"), rotation="1 day")

    try:
        conf = Config.from_values(values)
    except ReserverError as e:
        logger.error(str(e))
        return Outcome(error=e)

    return Reserve(conf).start()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Log in to the KMUTNB software portal and reserve an Adobe license."
    )
    parser.parse_args()

    outcome = run()
    # Failures were already logged to stderr with their stage and status.
    if outcome.success and outcome.reservation is not None:
        print(f"Reserved: {outcome.reservation.text}")
    return outcome.exit_code


def main_sync():
    """Console script wrapper that turns the outcome into a process exit code."""
    sys.exit(main())


if __name__ == "__main__":
    main_sync()
