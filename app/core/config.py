
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Autism Screening Client"
    VERSION: str = "0.1.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Remote analysis service
    ANALYSIS_API_BASE_URL: str = "http://localhost:8000"
    ANALYZE_PATH: str = "/analyze"
    HEALTH_PATH: str = "/health"
    IMAGE_FIELD_NAME: str = "file"
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    HEALTH_TIMEOUT_SECONDS: float = 5.0

    # Upload rules
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_TYPES: List[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    ANALYZE_RATE_LIMIT: str = "30/minute"
    SESSION_COOKIE_NAME: str = "session_id"
    SESSION_TTL_SECONDS: float = 30 * 60
    MAX_SESSIONS: int = 1000

    @property
    def BASE_ORIGIN(self) -> str:
        return self.ANALYSIS_API_BASE_URL.rstrip("/")

    @property
    def ANALYZE_URL(self) -> str:
        return f"{self.BASE_ORIGIN}{self.ANALYZE_PATH}"

    @property
    def HEALTH_URL(self) -> str:
        return f"{self.BASE_ORIGIN}{self.HEALTH_PATH}"

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"

settings = Settings()
