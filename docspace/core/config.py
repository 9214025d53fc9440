from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: Literal["dev", "test", "prod"] = "dev"

    # Credential store (users, OTP codes)
    database_url: str = "sqlite+aiosqlite:///./docspace.db"
    # Document store (workspaces, documents, favorites, permissions)
    document_store_url: Optional[str] = None
    sql_echo: bool = False
    create_tables: bool = True

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24

    password_pepper: str = ""
    bcrypt_rounds: int = 12

    otp_ttl_minutes: int = 10

    storage_backend: Literal["local", "s3"] = "local"
    upload_dir: str = "uploads"
    max_upload_size: int = 10 * 1024 * 1024
    s3_bucket: str = ""
    s3_region: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "no-reply@docspace.local"

    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def document_database_url(self) -> str:
        return self.document_store_url or self.database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()
