"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./chapterhouse.db"
    ADMIN_EMAILS: str = ""  # comma-separated allow-list
    CORS_ORIGINS: str = "http://localhost:3000"
    BLOB_STORE_DIR: str = "./uploads"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def admin_emails(self) -> frozenset[str]:
        return frozenset(e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip())


settings = Settings()
