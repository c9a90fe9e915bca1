"""Logging configuration for Nationsim.

Configures the root logger to write to stdout. Engine modules log through
``logging.getLogger(__name__)`` and never configure handlers themselves.
"""
import logging
import os
import sys


def setup_logging(verbose: bool = False):
    """Configure the root logger to output to stdout.

    Args:
        verbose: If True, sets log level to DEBUG for per-battle and
            per-settlement detail
    """
    logger = logging.getLogger()

    env_verbose = os.getenv("NATIONSIM_VERBOSE", "").lower() in ("1", "true", "yes")
    log_level = logging.DEBUG if (verbose or env_verbose) else logging.INFO
    logger.setLevel(log_level)

    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(console_handler)

    if log_level == logging.DEBUG:
        logging.info("Logging initialized with VERBOSE mode (DEBUG level).")
    else:
        logging.info("Logging initialized.")
