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
    DATABASE_URL: str = "sqlite:///./easyinventory.db"

    # Blob storage for item photos, served under /uploads
    UPLOAD_DIR: str = "static/uploads"
    # Where generated PDF reports are written
    DOWNLOADS_DIR: str = "storage/downloads"
    REPORT_ICON_PATH: str = "assets/icon.png"

    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
