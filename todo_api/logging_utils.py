# PURPOSE: one-time logging setup called from the app lifespan.

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once.

    Format: time level logger message k=v ...
    """
    root = logging.getLogger()
    if root.handlers:
        # uvicorn (or pytest) already installed a handler; only align the level
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(level.upper())
    # keep the libraries' chatter below our own INFO lines
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
