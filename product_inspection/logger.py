"""Process-wide logging setup. Cloud Functions collects stdout, so that is the only sink."""

import logging
import os
import sys

_configured = False


def setup_logging(level: str = None):
    """
    Attach the stdout handler once and set the root level.

    Before Settings is loaded the level comes from LOG_LEVEL directly;
    passing Settings.log_level later overrides it.
    """
    global _configured

    root = logging.getLogger()
    if level:
        root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if _configured:
        return

    if not level:
        root.setLevel(getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO))

    # Avoid duplicate handlers when the host already configured logging
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(name)s] %(message)s'
        ))
        root.addHandler(handler)

    _configured = True


def get_logger(name: str = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
