"""
Utility Functions
=================

This module provides general utility functions used throughout IsoMesh.

Functions
---------
configure_logging
    Set up logging for the IsoMesh package with customizable
    output format and destinations.
"""

import logging
import IsoMesh


def configure_logging(level=logging.INFO, logfile=None):
    """Configure logging for the IsoMesh package.

    Sets up a logger with a standard format and optional file output.
    This is called automatically when IsoMesh is imported.

    Parameters
    ----------
    level : int, default logging.INFO
        Logging level (e.g., logging.DEBUG, logging.INFO, logging.WARNING).
    logfile : str, optional
        Path to log file. If provided, logs are written to both console
        and file. If None, logs only to console.

    Examples
    --------
    >>> from IsoMesh.utils import configure_logging
    >>> import logging
    >>>
    >>> # Set debug level and log to file
    >>> configure_logging(level=logging.DEBUG, logfile='isomesh.log')

    Notes
    -----
    The log format is: "HH:MM:SS message"
    """
    logger = logging.getLogger(IsoMesh.__name__)
    logger.setLevel(level)

    logger_handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S")
    logger_handler.setFormatter(formatter)
    logger.addHandler(logger_handler)

    if logfile is not None:
        file_logger_handler = logging.FileHandler(logfile)
        file_logger_handler.setFormatter(formatter)
        logger.addHandler(file_logger_handler)
