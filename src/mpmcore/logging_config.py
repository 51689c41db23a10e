"""
Logging Configuration
Sets up the package logger for the MPM core.

Records carry the thread name because particle-to-node mapping may run on
several worker threads at once.
"""
import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

# numba's compiler logs every pass at DEBUG
NUMBA_LOG_LEVEL = logging.WARNING


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    append: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configures the logger for the 'mpmcore' namespace.

    The library itself never calls this; the driving application does.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        append: Append to `log_file` instead of overwriting it (restarted runs).
        stream: Console stream, stdout by default.

    Returns:
        The configured 'mpmcore' logger.
    """
    logger = logging.getLogger("mpmcore")
    logger.setLevel(level)

    # Avoid duplicate records when called more than once
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a' if append else 'w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.getLogger("numba").setLevel(max(level, NUMBA_LOG_LEVEL))

    logger.debug(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
