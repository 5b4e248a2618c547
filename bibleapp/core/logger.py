"""Logger configuration for the bibleapp client.

The session credential never reaches a sink: every record is patched to mask
it before formatting.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
MASK = "***"


def mask_secret(message: str, secret: str | None) -> str:
    """Replace every occurrence of secret in message with a mask."""
    if not secret:
        return message
    return message.replace(secret, MASK)


def setup_logger(
    level: str = "INFO",
    log_file: str | Path | None = None,
    secret: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru with a console sink and an optional rotating file sink.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of the log file; console only when None
        secret: Credential to mask in every record (usually the API token)
        rotation: Log rotation size or interval, e.g. "10 MB"
        retention: How long rotated files are kept, e.g. "7 days"
    """
    logger.remove()

    def patch(record) -> None:
        record["message"] = mask_secret(record["message"], secret)

    logger.configure(patcher=patch)

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            diagnose=False,
        )
        logger.debug(f"Logging to {log_path}")

    logger.debug(f"Logger initialized with level={level}")
