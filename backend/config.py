# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./marketplace.db"

    # Commission applied when no CommissionSettings row exists yet (0.05 = 5%)
    DEFAULT_COMMISSION_RATE: float = 0.05

    # Key for hashing KYC identifiers at rest
    KYC_HASH_SECRET: str = "dev-kyc-secret-change-me"

    # OTP verification
    OTP_EXPIRY_MINUTES: int = 10
    OTP_COOLDOWN_SECONDS: int = 60
    OTP_MAX_ATTEMPTS: int = 3

    # Fixed-window rate limit for sensitive endpoints
    RATE_LIMIT_REQUESTS: int = 20
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # Optional webhook receiving buyer/seller notifications
    NOTIFY_WEBHOOK_URL: Optional[str] = None

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
