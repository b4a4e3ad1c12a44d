"""
Logging for Alara.

Every module logs through the shared loguru logger:

    from alara.logging_config import logger

Sinks:
- stderr, colored, unless ALARA_MACHINE_MODE is set (the CLI's --machine
  flag and the test suite both set it so stdout stays parseable)
- .alara/logs/alara.log, rotated, only when ALARA_FILE_LOGGING is set
"""

import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

_configured = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def setup_logging(level="INFO", suppress_console=None, enable_file_logging=None):
    """
    Install Alara's sinks on the global logger. Later calls are no-ops until
    reset_logging().

    Args:
        level: Minimum level for the console sink
        suppress_console: Skip the stderr sink. None reads ALARA_MACHINE_MODE.
        enable_file_logging: Add the rotating file sink. None reads ALARA_FILE_LOGGING.
    """
    global _configured
    if _configured:
        return
    _configured = True

    logger.remove()

    if suppress_console is None:
        suppress_console = _env_flag("ALARA_MACHINE_MODE")
    if not suppress_console:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if enable_file_logging is None:
        enable_file_logging = _env_flag("ALARA_FILE_LOGGING")
    if enable_file_logging:
        from alara.paths import get_paths

        paths = get_paths()
        paths.ensure_dirs()
        logger.add(
            paths.logs_dir / "alara.log",
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="5 MB",
            retention=3,
            catch=True,
        )


def reset_logging():
    """Let the next setup_logging() call reinstall the sinks (CLI --verbose/--machine)."""
    global _configured
    _configured = False


setup_logging()
