"""
Logging for LdaReport runs.

Library modules ask for loggers through ``get_logger``, which places them under
the ``LdaReport`` logger. Only ``setup_logging`` installs handlers; it is
called once by whatever runs a report, and calling it again replaces the
handlers it installed before while leaving foreign handlers alone.

Warnings raised through ``warnings.warn`` by the plotting and LDAvis stack
(matplotlib, pyLDAvis, polars) are routed into the ``py.warnings`` logger so
they land in the same console and log file as the report steps.
"""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "LdaReport"
THIRD_PARTY_LOGGERS = ("matplotlib", "PIL", "polars", "nltk", "pyLDAvis", "joblib", "numexpr")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# marks handlers owned by setup_logging
_HANDLER_TAG = "_lda_report_handler"


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    try:
        return getattr(logging, level.upper())
    except AttributeError as e:
        raise ValueError(f"Invalid logging level: {level}") from e


def setup_logging(
    level: str | int = "INFO",
    log_file: str | Path | None = None,
    third_party_level: str | int = "WARNING",
    capture_warnings: bool = True,
) -> logging.Logger:
    """
    Send LdaReport logs to stdout and optionally to a log file.

    Args:
        level: Level for the ``LdaReport`` loggers and the handlers
        log_file: Optional log file; its directory is created if needed, so it
            can live inside the report output directory
        third_party_level: Level for the plotting, LDAvis and tokenizer libraries
        capture_warnings: Route ``warnings.warn`` output into logging

    Returns:
        The ``LdaReport`` package logger

    Raises:
        ValueError: If either logging level is invalid

    Example:
        >>> from LdaReport.logging_config import setup_logging
        >>> setup_logging(level="DEBUG", log_file="lda_report/report.log")
    """
    log_level = _parse_level(level)
    library_level = _parse_level(third_party_level)
    handler_level = min(log_level, library_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)

    root.setLevel(handler_level)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logging.captureWarnings(capture_warnings)
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for ``name``, nested under the ``LdaReport`` logger.

    Module names inside the package are used as they are; anything else
    (``__main__`` when a module runs as a script) is prefixed.
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def log_section(logger: logging.Logger, title: str) -> None:
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)


def log_step(logger: logging.Logger, nr: int, title: str) -> None:
    logger.info(f"--- Step {nr}: {title} ---")
