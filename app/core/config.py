from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Student Resource Portal"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./portal.db"
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = True

    # Cache: REDIS_URL unset means every read misses and nothing is stored
    REDIS_URL: Optional[str] = None
    CACHE_BACKEND: str = "redis"  # redis | memory | none
    CACHE_TTL: int = 300
    REDIS_MAX_CONNECT_ATTEMPTS: int = 3
    REDIS_SOCKET_TIMEOUT: float = 2.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = "logs"

    # Client
    PORTAL_API_BASE_URL: str = "http://localhost:8000"
    CLIENT_STORAGE_PATH: str = "~/.cache/student-portal/storage.json"

    class Config:
        env_file = ".env"

settings = Settings()
