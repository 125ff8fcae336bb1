import logging
import sys

FAILURE_LOGGER_NAME = "workaholic.notifications.failures"


def setup_logging(level: str = "INFO") -> None:
    """Configure simple, consistent logging for the app.

    Format: time level logger message k=v ...
    """
    root = logging.getLogger()
    if root.handlers:
        # Respect existing (e.g., uvicorn) but align level
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S"
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level.upper())


def setup_failure_log(path: str | None) -> logging.Logger | None:
    """Append-only plain-text log of failed notification sends.

    Lines look like: [2025-09-23T17:30:00] Failed to send notification to ...
    Returns None when `path` is empty (failure file disabled).
    """
    if not path:
        return None
    logger = logging.getLogger(FAILURE_LOGGER_NAME)
    close_failure_log(logger)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    # The dispatcher already logs the warning through the app logger
    logger.propagate = False
    return logger


def close_failure_log(logger: logging.Logger | None) -> None:
    if logger is None:
        return
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
