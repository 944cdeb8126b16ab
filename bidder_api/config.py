"""
Control API settings, read once from the environment at import time.
"""
import os


class Config:
    """API configuration. Bidder engine settings live in ``bidder.BidderConfig``."""

    API_TITLE: str = "Marketplace Bidder Control API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Start, stop and watch the marketplace bidder"
    API_HOST: str = os.getenv("BIDDER_API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("BIDDER_API_PORT", "8000"))

    # The API is meant for a local dashboard
    CORS_ORIGINS: list = os.getenv("BIDDER_API_CORS_ORIGINS", "*").split(",")
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["GET", "POST"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Activity log kept for GET /api/log
    LOG_BUFFER_SIZE: int = int(os.getenv("BIDDER_API_LOG_BUFFER", "500"))
    DEFAULT_LOG_LIMIT: int = 100

    # Seconds to wait for the worker on stop
    STOP_TIMEOUT_S: float = float(os.getenv("BIDDER_API_STOP_TIMEOUT", "30"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if cls.LOG_BUFFER_SIZE <= 0:
            raise ValueError("BIDDER_API_LOG_BUFFER must be positive")
        if cls.STOP_TIMEOUT_S <= 0:
            raise ValueError("BIDDER_API_STOP_TIMEOUT must be positive")
        if not 0 < cls.API_PORT < 65536:
            raise ValueError(f"BIDDER_API_PORT out of range: {cls.API_PORT}")


config = Config()
