"""
Tracing for the shell internals.

Operator-facing messages are printed directly; this logger only carries
debug traces (pipes, pids, descriptors, job bookkeeping). It writes to
stderr and stays quiet unless PIPESHELL_LOG_LEVEL asks for more.
"""

import logging
import sys

from config import LOG_LEVEL, SHELL_NAME

_configured = False


def setup_logging(level=None):
    """Attach a stderr handler to the shell's root logger (once)."""
    global _configured

    root = logging.getLogger(SHELL_NAME)
    root.setLevel(level or LOG_LEVEL)

    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))
        root.addHandler(handler)
        root.propagate = False
        _configured = True

    return root


def get_logger(name):
    """Logger for a shell module, e.g. get_logger(__name__)."""
    short = name.rsplit(".", 1)[-1]
    return logging.getLogger(f"{SHELL_NAME}.{short}")
