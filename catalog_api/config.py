# catalog_api/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings, read from the environment (and `.env.local` if present).
    Every value has a default that works for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DB_HOST: str = "localhost"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "products_db"
    DB_PORT: int = 3306
    # full SQLAlchemy URL, wins over the DB_* parts when set
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    CREATE_SCHEMA: bool = True

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    CORS_ORIGINS: List[str] = ["*"]

    # Uploads / listing
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    MAX_PAGE_LIMIT: int = 100

    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )
