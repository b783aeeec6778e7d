"""
mediascribe.logging - Package logger.

Pipeline runs happen on a worker thread, so records carry the thread name.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("mediascribe")


def configure_logging(verbose: bool = False) -> None:
    """Route mediascribe records to stderr.

    Verbose mode shows every external command line and exit status; the
    default only surfaces warnings such as an unreadable transcript.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s [%(threadName)s] %(message)s",
    )
    logger.setLevel(level)
