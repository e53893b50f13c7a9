import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel
from sqlalchemy.engine import URL

# Explicitly load .env from project root (parent of shortlinks/)
ENV_PATH = Path(__file__).parent.parent / ".env"

# SQLite for local dev — stored next to the package folder
DEV_DB_PATH = Path(__file__).parent.parent / "shortlinks_dev.db"


class Settings(BaseModel):
    environment: str = "dev"
    db_host: str | None = None
    db_port: int | None = None
    db_user: str | None = None
    db_password: str | None = None
    db_name: str | None = None
    database_url: str | None = None
    base_url: str | None = None
    port: int = 3000
    pool_size: int = 10
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(ENV_PATH)
        db_port = os.getenv("DB_PORT")
        return cls(
            environment=os.getenv("ENVIRONMENT", "dev"),
            db_host=os.getenv("DB_HOST") or None,
            db_port=int(db_port) if db_port else None,
            db_user=os.getenv("DB_USER") or None,
            db_password=os.getenv("DB_PASSWORD") or None,
            db_name=os.getenv("DB_NAME") or None,
            database_url=os.getenv("DATABASE_URL") or None,
            base_url=(os.getenv("BASE_URL") or "").strip() or None,
            port=int(os.getenv("PORT", 3000)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def sqlalchemy_url(self) -> str | URL:
        if self.database_url:
            return self.database_url
        if self.db_host:
            return URL.create(
                "mysql+pymysql",
                username=self.db_user,
                password=self.db_password,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            )
        if self.environment == "prod":
            raise RuntimeError("DB_HOST or DATABASE_URL must be set in production")
        return f"sqlite:///{DEV_DB_PATH}"

    def public_base_url(self, request_base: str) -> str:
        """Public prefix of short URLs: BASE_URL, else the inbound scheme + host."""
        return (self.base_url or request_base).rstrip("/")
