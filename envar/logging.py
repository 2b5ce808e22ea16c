import logging
import sys
from typing import Optional

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Map string log levels to logging constants
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Modules that talk to the operating system and log every call they make.
# These stay at WARNING unless verbose mode is enabled.
TECHNICAL_MODULES = [
    "envar.stores.file_store",
    "envar.stores.registry_store",
    "envar.broadcast.signal_file",
    "envar.broadcast.windows",
]


def get_logger(name: str) -> logging.Logger:
    """Return a logger with the specified name.

    Args:
        name: The name for the logger, typically __name__

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    # Only add a handler if it doesn't have one already
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(DEFAULT_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        # Don't propagate to root logger to avoid duplicate logging
        logger.propagate = False

    return logger


def resolve_level(level_name: Optional[str]) -> int:
    """Translate a configured level name into a logging constant.

    Unknown names fall back to the default level.
    """
    if not level_name:
        return DEFAULT_LOG_LEVEL
    return LOG_LEVELS.get(level_name.lower(), DEFAULT_LOG_LEVEL)


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    level: Optional[str] = None,
) -> None:
    """Configure logging settings based on command line flags.

    Args:
        verbose: Whether to enable verbose mode (shows all debug logs)
        quiet: Whether to enable quiet mode (only shows errors)
        level: Level name from the configuration file, used when neither
            flag is given
    """
    if quiet:
        root_level = logging.ERROR
    elif verbose:
        root_level = logging.DEBUG
    else:
        root_level = resolve_level(level)

    # Every envar logger hangs off the package logger
    package_logger = logging.getLogger("envar")
    package_logger.setLevel(root_level)

    for name in list(logging.root.manager.loggerDict):
        if name == "envar" or name.startswith("envar."):
            logging.getLogger(name).setLevel(root_level)

    for module_name in TECHNICAL_MODULES:
        module_logger = logging.getLogger(module_name)
        if verbose:
            module_logger.setLevel(logging.DEBUG)
        else:
            module_logger.setLevel(max(root_level, logging.WARNING))
