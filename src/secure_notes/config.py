import logging
import os
import secrets
from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """
    Process-wide configuration. Built once at startup and never mutated;
    the signing secret and hashing work factor are handed to the token codec
    and password hasher at construction.
    """
    model_config = ConfigDict(frozen=True)

    secret_key: str = Field(..., min_length=1, description="JWT signing secret")
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(hours=24)
    database_url: str = "sqlite:///./notes.db"
    bcrypt_rounds: int = Field(12, ge=4, le=31)
    frontend_origin: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    env: str = "development"


# PUBLIC_INTERFACE
def load_settings() -> Settings:
    """Build Settings from environment variables."""
    secret_key = os.getenv("SECRET_KEY")
    if not secret_key:
        # Tokens will not survive a restart with a per-process secret
        logger.warning("SECRET_KEY is not set; using a random per-process secret")
        secret_key = secrets.token_urlsafe(32)

    return Settings(
        secret_key=secret_key,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_ttl=timedelta(minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./notes.db"),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        frontend_origin=os.getenv("FRONTEND_ORIGIN", "http://localhost:3000"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        env=os.getenv("ENV", "development"),
    )
