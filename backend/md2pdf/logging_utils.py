from __future__ import annotations

import logging
import sys

from .config import LOG_LEVEL

_ROOT_NAME = "md2pdf"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    level = logging.getLevelName(LOG_LEVEL)
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``md2pdf`` hierarchy.

    Module loggers of this package (``md2pdf.loader`` etc.) already live under
    the root; the CLI passes its own module name and is re-parented here.
    """
    _configure_root()
    if name == _ROOT_NAME or name.startswith(_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
