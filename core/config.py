# ==================================================================================
# core/config.py: FastAPI Configuration (JWT + GitHub OAuth + SendGrid, Pydantic v2)
# ==================================================================================
import logging
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./saas.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    JWT_SECRET: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # ------------------------
    # GITHUB OAUTH CONFIG
    # ------------------------
    GITHUB_OAUTH_CLIENT_ID: str = ""
    GITHUB_OAUTH_CLIENT_SECRET: str = ""
    GITHUB_OAUTH_CLIENT_REDIRECT_URI: str = "http://localhost:3000/api/auth/callback"

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: Optional[str] = None
    MAIL_FROM: Optional[str] = None

    # ------------------------
    # FRONTEND & BACKEND CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:3000"
    API_URL: str = "http://localhost:3333"

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def ACCESS_TOKEN_MAX_AGE(self) -> int:
        """Token lifetime in seconds, shared by the JWT and the web cookie."""
        return self.ACCESS_TOKEN_EXPIRE_DAYS * 60 * 60 * 24

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
    logger.info("Environment: %s, Debug: %s", settings.ENVIRONMENT, settings.DEBUG)
except ValidationError as e:
    logger.error("Environment configuration error: missing or invalid settings!\n%s", e)
    sys.exit(1)
