# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./storefront.db"
    LOG_LEVEL: str = "INFO"

    # Fondy hosted checkout (defaults point at the public sandbox merchant)
    FONDY_API_URL: str = "https://pay.fondy.eu/api/checkout/url/"
    FONDY_MERCHANT_ID: str = "1396424"
    FONDY_MERCHANT_PASSWORD: str = "test"
    FONDY_CURRENCY: str = "UAH"
    FONDY_TIMEOUT_SECONDS: float = 15.0
    FONDY_VERIFY_CALLBACK_SIGNATURE: bool = True

    FRONTEND_URL: str = "http://localhost:5173"

    # Public backend URL used for Fondy server callbacks (webhook)
    BACKEND_URL: str = "http://127.0.0.1:8000"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
