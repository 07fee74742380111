from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DB_URL: str = "sqlite:///./data/smiles.db"
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    # Journal rules
    ENTRY_MIN_CHARS: int = 100
    STREAK_MAX_LOOKBACK_DAYS: int = 365
    PASSWORD_MIN_LENGTH: int = 6
    DEFAULT_TZ_OFFSET_MINUTES: int = 0

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_MAX_FILE_SIZE: int = 10485760  # 10MB in bytes
    LOG_BACKUP_COUNT: int = 5
    LOG_COLORS: str = "true"

    # Environment
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1",
    ]

    class Config:
        env_file = ".env"

settings = Settings()
