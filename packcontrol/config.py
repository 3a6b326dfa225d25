# packcontrol/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./packcontrol.db"

    # Extra CORS origin for the deployed frontend
    FRONTEND_URL: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    # Reports look back this many days; the dashboard shows this many recent movements
    REPORT_WINDOW_DAYS: int = 30
    RECENT_MOVEMENTS_LIMIT: int = 5

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

settings = Settings()
