"""Configuration management."""
import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration from environment variables."""

    # Paths
    DB_PATH: str = os.getenv("DB_PATH", "data/widget.db")
    IMG_DIR: str = os.getenv("IMG_DIR", "img")
    OPTIONS_PATH: str = os.getenv("OPTIONS_PATH", "widget-options.json")
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")

    # Remote source
    TIEBA_BASE_URL: str = os.getenv("TIEBA_BASE_URL", "https://tieba.baidu.com")
    MAX_ITEMS_PER_FETCH: int = int(os.getenv("MAX_ITEMS_PER_FETCH", "10"))

    # Time budgets (seconds)
    POST_INFO_TIMEOUT: float = float(os.getenv("POST_INFO_TIMEOUT", "10"))
    IMAGE_TIMEOUT: float = float(os.getenv("IMAGE_TIMEOUT", "15"))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))

    # Cache freshness (minutes), overridable by the "refresh-circle" preference
    DEFAULT_REFRESH_MINUTES: float = float(os.getenv("DEFAULT_REFRESH_MINUTES", "30"))

    # Images
    MAX_IMAGE_BYTES: int = int(os.getenv("MAX_IMAGE_BYTES", str(512 * 1024)))
    IMAGE_CLEAR_INTERVAL: float = float(os.getenv("IMAGE_CLEAR_INTERVAL", str(3 * 24 * 3600)))
    ABSTRACT_LEN_TWO_IMAGES: int = int(os.getenv("ABSTRACT_LEN_TWO_IMAGES", "40"))
    PER_HOST_LIMIT: int = int(os.getenv("PER_HOST_LIMIT", "3"))

    # Logging
    DEBUG: bool = _env_bool("DEBUG")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_MAX_BYTES: int = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10 MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "10"))

    @classmethod
    def get_log_level(cls) -> int:
        """
        Get logging level as integer.

        Returns:
            Logging level constant
        """
        if cls.DEBUG:
            return logging.DEBUG
        return getattr(logging, cls.LOG_LEVEL.upper(), logging.INFO)

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not cls.TIEBA_BASE_URL:
            errors.append("TIEBA_BASE_URL is not set")

        if cls.MAX_ITEMS_PER_FETCH < 1:
            errors.append("MAX_ITEMS_PER_FETCH must be >= 1")

        if cls.POST_INFO_TIMEOUT <= 0:
            errors.append("POST_INFO_TIMEOUT must be > 0")

        if cls.IMAGE_TIMEOUT <= 0:
            errors.append("IMAGE_TIMEOUT must be > 0")

        if cls.REQUEST_TIMEOUT <= 0:
            errors.append("REQUEST_TIMEOUT must be > 0")

        if cls.DEFAULT_REFRESH_MINUTES <= 0:
            errors.append("DEFAULT_REFRESH_MINUTES must be > 0")

        if cls.MAX_IMAGE_BYTES < 1:
            errors.append("MAX_IMAGE_BYTES must be >= 1")

        if cls.IMAGE_CLEAR_INTERVAL <= 0:
            errors.append("IMAGE_CLEAR_INTERVAL must be > 0")

        if cls.PER_HOST_LIMIT < 1:
            errors.append("PER_HOST_LIMIT must be >= 1")

        return errors

    @classmethod
    def display(cls) -> None:
        """Display current configuration."""
        print("=== Configuration ===")
        print(f"DB_PATH: {cls.DB_PATH}")
        print(f"IMG_DIR: {cls.IMG_DIR}")
        print(f"OPTIONS_PATH: {cls.OPTIONS_PATH}")
        print(f"LOGS_DIR: {cls.LOGS_DIR}")
        print(f"TIEBA_BASE_URL: {cls.TIEBA_BASE_URL}")
        print(f"MAX_ITEMS_PER_FETCH: {cls.MAX_ITEMS_PER_FETCH}")
        print(f"POST_INFO_TIMEOUT: {cls.POST_INFO_TIMEOUT}s")
        print(f"IMAGE_TIMEOUT: {cls.IMAGE_TIMEOUT}s")
        print(f"DEFAULT_REFRESH_MINUTES: {cls.DEFAULT_REFRESH_MINUTES}")
        print(f"MAX_IMAGE_BYTES: {cls.MAX_IMAGE_BYTES}")
        print(f"IMAGE_CLEAR_INTERVAL: {cls.IMAGE_CLEAR_INTERVAL}s")
        print(f"DEBUG: {cls.DEBUG}")
        print(f"LOG_LEVEL: {cls.LOG_LEVEL}")
        print("=" * 30)
