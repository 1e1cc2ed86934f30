"""
Logging setup for the QuizCam API

Console output always; outside the test environment also:
  - <log_dir>/quizcam.log        INFO and above, rotated at midnight
  - <log_dir>/quizcam_error.log  ERROR and above, size-capped

Usage:
    setup_logging(environment=settings.environment, log_dir=settings.log_dir,
                  level=settings.log_level or None)
    logger = get_logger(__name__)
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

DEFAULT_LEVELS = {
    "development": logging.DEBUG,
    "test": logging.WARNING,
    "production": logging.INFO,
}

# libraries that log every request at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "langsmith")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(environment: str, level: Union[str, int, None] = None) -> int:
    """Explicit level wins; otherwise the environment default (INFO when unknown)."""
    if level is None or level == "":
        return DEFAULT_LEVELS.get(environment, logging.INFO)
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    environment: str = "development",
    log_dir: str = "logs",
    app_name: str = "quizcam",
    level: Union[str, int, None] = None,
) -> int:
    """
    Configure the root logger. Safe to call more than once.

    Returns:
        the effective root level
    """
    log_level = resolve_level(environment, level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if environment != "test":
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        app_handler = logging.handlers.TimedRotatingFileHandler(
            filename=log_path / f"{app_name}.log",
            when="midnight",
            backupCount=14,
            encoding="utf-8",
        )
        app_handler.setLevel(max(log_level, logging.INFO))
        app_handler.setFormatter(formatter)
        root_logger.addHandler(app_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_path / f"{app_name}_error.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    get_logger(__name__).debug(
        "Logging configured: environment=%s level=%s", environment, logging.getLevelName(log_level)
    )
    return log_level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
