# backend configuration
# loads env vars for mongodb, jwt, gemini, and wellness defaults

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "calmmind_db")
    MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

    # jwt auth
    JWT_SECRET: str = os.getenv("JWT_SECRET", "calmmind-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # gemini
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    CHAT_TEMPERATURE: float = 0.7
    ANALYSIS_TEMPERATURE: float = 0.2

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # daily rollups are keyed by calendar day in this timezone
    USER_TIMEZONE: str = os.getenv("USER_TIMEZONE", "UTC")

    # shown when the chat model cannot be reached
    CHAT_FALLBACK_MESSAGE: str = (
        "I'm here to listen and support you. Sometimes I have trouble connecting, "
        "but I want you to know that your feelings are valid and important."
    )

    # pause between gemini calls during retroactive journal analysis
    RETRO_ANALYSIS_DELAY_SECONDS: float = 0.5

    # journal validation
    JOURNAL_MIN_LENGTH: int = 1
    JOURNAL_MAX_LENGTH: int = 10000

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
