# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 600
    DATABASE_URL: str = "sqlite:///./database_workshop.db"

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Fallback secret for admin promotion when admin_settings holds none
    ADMIN_PROMOTION_PASSWORD: Optional[str] = None
    # The only account allowed to produce bcrypt hashes through /functions/hash-password
    SUPER_ADMIN_ID: Optional[int] = None

    # Vision model gateway used to read frame numbers from label photos
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    OCR_MODEL: str = "google/gemini-2.5-flash"

    # Reconciliation interval of the TV board stream
    TV_POLL_INTERVAL_SECONDS: float = 5.0

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
