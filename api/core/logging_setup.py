"""
Root logger wiring.

Modules log through `logging.getLogger(__name__)` with `event key=value`
messages; this only decides where those records go.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_HANDLER_NAME = "product-catalog"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)

    # Calling twice (tests, reloads) must not duplicate output.
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return None

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
