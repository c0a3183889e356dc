"""
Console logging for the relaxation analysis CLI.

Message levels are told apart by prefix only:
- INFO: no prefix (stdout)
- WARNING: "! " (stdout)
- ERROR/CRITICAL: "!! " (stderr)
- DEBUG: "[DEBUG] " (stderr, only with -v)
"""

import argparse
import logging
import sys
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

LEVEL_PREFIXES = {
    logging.DEBUG: "[DEBUG] ",
    logging.INFO: "",
    logging.WARNING: "! ",
    logging.ERROR: "!! ",
    logging.CRITICAL: "!! ",
}


# =============================================================================
# Formatter and Filter
# =============================================================================

class PrefixFormatter(logging.Formatter):
    """Prefix the bare message according to its level."""

    def format(self, record):
        return f"{LEVEL_PREFIXES.get(record.levelno, '')}{record.getMessage()}"


class LevelFilter(logging.Filter):
    """Filter that accepts only specific log levels."""

    def __init__(self, levels: Union[int, Iterable[int]]):
        super().__init__()
        self.levels = set(levels) if isinstance(levels, (list, tuple, set)) else {levels}

    def filter(self, record):
        return record.levelno in self.levels


# =============================================================================
# Setup Functions
# =============================================================================

def _add_handler(
    root_logger: logging.Logger,
    stream,
    level: int,
    only: Optional[Iterable[int]] = None
) -> None:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    if only is not None:
        handler.addFilter(LevelFilter(tuple(only)))
    handler.setFormatter(PrefixFormatter())
    root_logger.addHandler(handler)


def setup_logging(args: argparse.Namespace) -> None:
    """
    Configure logging based on command line arguments.

    - Default: INFO + WARNING on stdout, ERROR on stderr
    - Quiet (-q): no INFO
    - Verbose (-v): DEBUG on stderr as well

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments with 'quiet' and 'verbose' attributes
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    if not args.quiet:
        _add_handler(root_logger, sys.stdout, logging.INFO, only=[logging.INFO])
    _add_handler(root_logger, sys.stdout, logging.WARNING, only=[logging.WARNING])
    _add_handler(root_logger, sys.stderr, logging.ERROR)
    if args.verbose >= 1:
        _add_handler(root_logger, sys.stderr, logging.DEBUG, only=[logging.DEBUG])

    # Matplotlib font manager is chatty at DEBUG
    logging.getLogger('matplotlib').setLevel(logging.WARNING)


def log_separator(title: Optional[str] = None, length: int = 50, char: str = "=") -> None:
    """
    Log a separator line, optionally followed by a title and a second line.
    """
    logger.info(char * length)
    if title:
        logger.info(title)
        logger.info(char * length)
