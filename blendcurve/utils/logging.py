"""Logging setup shared by the API process and the CLI."""

import logging
import sys

from blendcurve.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())
    if _configured:
        return

    # stdout is reserved for command output (cli summary prints JSON)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # uvicorn access logs are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True
