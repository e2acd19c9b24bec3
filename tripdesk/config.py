"""
TripDesk Service Configuration
Loads settings from environment variables
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment"""

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_ENV: str = os.getenv("API_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Configuration
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")

    # Key-value store backing edit previews and rate limits ("memory" or "redis")
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

    # Listing catalog ("memory" seed catalog or "mysql")
    LISTING_BACKEND: str = os.getenv("LISTING_BACKEND", "memory")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "3306"))
    DB_USER: str = os.getenv("DB_USER", "root")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")
    DB_NAME: str = os.getenv("DB_NAME", "tripdesk_listings")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))

    # Content edit previews
    EDIT_PREVIEW_TTL: int = int(os.getenv("EDIT_PREVIEW_TTL", "3600"))
    EDIT_LOCK_TTL: int = int(os.getenv("EDIT_LOCK_TTL", "30"))

    # Rate limiting for /api/ai/*
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Result sizes
    NL_QUERY_MAX_RESULTS: int = int(os.getenv("NL_QUERY_MAX_RESULTS", "50"))
    NL_QUERY_DEFAULT_RESULTS: int = int(os.getenv("NL_QUERY_DEFAULT_RESULTS", "20"))
    MAX_RECOMMENDATIONS: int = int(os.getenv("MAX_RECOMMENDATIONS", "5"))
    RECOMMENDATION_CANDIDATES: int = int(os.getenv("RECOMMENDATION_CANDIDATES", "20"))

    # Multi-filter search
    SEARCH_MAX_RESULTS: int = int(os.getenv("SEARCH_MAX_RESULTS", "50"))
    SEARCH_CACHE_TTL: int = int(os.getenv("SEARCH_CACHE_TTL", "300"))

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def redis_url(self) -> str:
        """Get Redis connection URL"""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def get_mysql_config(self) -> dict:
        """
        Get MySQL connection configuration

        Returns:
            MySQL connection config dict
        """
        return {
            "host": self.DB_HOST,
            "port": self.DB_PORT,
            "user": self.DB_USER,
            "password": self.DB_PASSWORD,
            "database": self.DB_NAME,
            "charset": "utf8mb4",
            "collation": "utf8mb4_unicode_ci"
        }


# Global settings instance
settings = Settings()
