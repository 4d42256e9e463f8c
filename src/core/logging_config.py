"""
Logging configuration for a cluster node process.
"""

import logging
import sys

from core.constants import LOG_DATE_FORMAT, LOG_FORMAT


def configure_logging(level: str = "INFO", node_id: int = None) -> None:
    """
    Install a stdout handler on the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        node_id: Optional node id prefixed to every record, handy when several
            nodes share one terminal
    """
    log_format = LOG_FORMAT
    if node_id is not None:
        log_format = f"[node {node_id}] {LOG_FORMAT}"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Drop handlers installed by an earlier call
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(log_format, LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)

