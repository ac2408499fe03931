"""Console and rotating file logging."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = "widget",
    log_dir: str | Path = "logs",
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 10
) -> logging.Logger:
    """
    Configure a logger that writes to stderr and to ``<log_dir>/<name>.log``.
    
    Calling it again for the same name replaces the handlers instead of
    stacking duplicates.
    
    Args:
        name: Logger name
        log_dir: Directory for log files
        level: Logging level
        max_bytes: Rotate the file after this many bytes
        backup_count: Number of rotated files to keep
        
    Returns:
        Configured logger
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)
    
    file_handler = RotatingFileHandler(
        log_dir / f"{name}.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    
    # aiohttp is chatty at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    
    return logger
