from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    # Identity provider session tokens. RS256 uses the PEM public key from the provider dashboard.
    clerk_jwt_key: str = Field("", alias="CLERK_JWT_KEY")
    clerk_jwt_algorithm: str = Field("RS256", alias="CLERK_JWT_ALGORITHM")
    clerk_secret_key: str = Field("", alias="CLERK_SECRET_KEY")
    clerk_api_url: str = Field("https://api.clerk.com/v1", alias="CLERK_API_URL")
    clerk_webhook_secret: str = Field("", alias="CLERK_WEBHOOK_SECRET")
    clerk_timeout_seconds: float = Field(10.0, alias="CLERK_TIMEOUT_SECONDS")

    teacher_email_domain: str = Field("@ormiston.school.nz", alias="TEACHER_EMAIL_DOMAIN")
    student_email_prefix: str = Field("st", alias="STUDENT_EMAIL_PREFIX")
    dev_email_prefix: Optional[str] = Field("st23030", alias="DEV_EMAIL_PREFIX")

    sentry_dsn: Optional[str] = Field(None, alias="SENTRY_DSN")
    sentry_environment: Optional[str] = Field(None, alias="SENTRY_ENVIRONMENT")
    sentry_traces_sample_rate: float = Field(0.1, alias="SENTRY_TRACES_SAMPLE_RATE")

    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
