"""Logging helpers for webbundle.

All modules get their logger through get_logger() so output lives under the
``webbundle`` namespace and can be configured in one place:

    from webbundle.logging import get_logger
    log = get_logger('archiver')
    log.info("Archived 12 files")
"""

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = 'webbundle'
LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the webbundle namespace.

    Args:
        name: Short module name ('compiler', 'pipeline'), or None for the root

    Returns:
        Logger named 'webbundle.<name>'
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def configure(level: int = logging.INFO, stream=None) -> logging.Logger:
    """Install a single stderr handler on the webbundle root logger.

    Calling this again replaces the previous handler instead of stacking
    another one, so repeated CLI invocations in one process log once.
    """
    root = get_logger()
    for handler in list(root.handlers):
        if getattr(handler, '_webbundle', False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._webbundle = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    return root
