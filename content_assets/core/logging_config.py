import logging
import os
import sys

DEFAULT_LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV_VAR = "CONTENT_ASSETS_LOG_LEVEL"


def _resolve_level_name(name: str, source: str) -> int:
    level_name = name.upper()
    if isinstance(logging.getLevelName(level_name), int):
        return logging.getLevelName(level_name)
    # Logging is not configured yet, so the warning goes straight to stderr.
    print(
        f"Warning: Invalid {source} '{name}'. Defaulting to {logging.getLevelName(DEFAULT_LOG_LEVEL)}.",
        file=sys.stderr,
    )
    return DEFAULT_LOG_LEVEL


def setup_logging(level: int | str | None = None) -> None:
    """
    Sets up logging for the content_assets package.

    Args:
        level: The logging level to set. Can be an integer (e.g., logging.INFO),
               a string (e.g., "INFO"), or None. If None, it tries to get
               the level from the CONTENT_ASSETS_LOG_LEVEL environment variable,
               defaulting to DEFAULT_LOG_LEVEL.
    """
    if level is None:
        env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "")
        log_level = _resolve_level_name(env_level, LOG_LEVEL_ENV_VAR) if env_level else DEFAULT_LOG_LEVEL
    elif isinstance(level, str):
        log_level = _resolve_level_name(level, "log level string")
    else:
        log_level = level

    # A named logger keeps us from reconfiguring other libraries.
    app_logger = logging.getLogger("content_assets")
    app_logger.setLevel(log_level)

    # Prevent duplicate handlers if setup_logging is called multiple times
    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app_logger.addHandler(handler)
