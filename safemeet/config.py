from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
from urllib.parse import quote


class Settings(BaseSettings):
    """Application configuration using Pydantic Settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "SafeMeet Backend"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    postgres_host: str = "localhost"
    postgres_port: Optional[int] = 5432
    postgres_db: str = "safemeet"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    db_pool_min_size: Optional[int] = 2
    db_pool_max_size: Optional[int] = 20
    db_timeout_seconds: float = 10.0

    @property
    def database_url(self) -> str:
        """DSN for tools that take a URL (Alembic); credentials are percent-encoded"""
        return (
            f"postgresql://{quote(self.postgres_user, safe='')}:{quote(self.postgres_password, safe='')}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # CORS
    allowed_origins: str = "*"

    @property
    def cors_origins(self) -> list[str]:
        """Get list of allowed CORS origins"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    # OTP
    otp_ttl_seconds: int = 300
    otp_echo_in_response: bool = False  # only honoured together with debug

    # Passwords
    bcrypt_rounds: int = 10

    # Email (SendGrid first, SMTP fallback)
    email_from: str = "no-reply@safemeet.app"
    otp_email_subject: str = "Your SafeMeet OTP Code"
    sendgrid_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_timeout_seconds: float = 10.0

    # Firebase Cloud Messaging
    firebase_service_account: Optional[str] = None  # service account JSON as a string
    firebase_credentials_file: Optional[str] = None
    push_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 10 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 10 and 31")
        return v

    @field_validator("otp_ttl_seconds")
    @classmethod
    def validate_otp_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("OTP_TTL_SECONDS must be positive")
        return v


settings = Settings()
