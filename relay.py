"""Song Relay: entry point."""
import logging
import sys

import uvicorn
from rich.logging import RichHandler

from songrelay.config import HOST, PORT, LOG_LEVEL
from songrelay.preflight import run_preflight
from songrelay.web.server import create_app


def _setup_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def main():
    _setup_logging()
    if not run_preflight():
        sys.exit(1)

    app = create_app()
    uvicorn.run(app, host=HOST, port=PORT, log_config=None, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
