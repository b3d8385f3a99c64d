"""
Logging output using Loguru.

One file sink (rotated) for both the terminal process and the server, plus an
optional stderr sink for development.
"""

import sys
from pathlib import Path

from loguru import logger

from .config import LoggingConfig, get_data_dir


def get_log_file_path() -> Path:
    """Get the default path to the log file."""
    return get_data_dir() / "aura.log"


def setup_loguru(config: LoggingConfig) -> Path:
    """
    Configure loguru sinks from the logging configuration.

    Args:
        config: Logging section of the loaded configuration

    Returns:
        Path of the log file in use
    """
    log_file = Path(config.log_file) if config.log_file else get_log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(
        log_file,
        rotation=f"{config.max_file_size_mb} MB",
        retention=config.backup_count,
        level=config.level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if config.console_output:
        logger.add(
            sys.stderr,
            level=config.level,
            format="{level}: {message}",
        )

    logger.info(
        f"Loguru initialized: {log_file} (level={config.level}, "
        f"max_size={config.max_file_size_mb}MB, backups={config.backup_count})"
    )
    return log_file
