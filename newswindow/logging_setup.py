import logging
import os
import sys


def configure_logging() -> None:
    # Standard output carries article text only.
    level_name = os.environ.get("NEWSWINDOW_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
