from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://hrdesk:hrdesk_secret@db:5432/hrdesk"
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # IANA zone used for "today", the late cutoff and the nightly sweep
    TIMEZONE: str = "Asia/Karachi"
    LATE_THRESHOLD_TIME: str = "09:00"

    ABSENCE_SWEEPER_ENABLED: bool = True
    ABSENCE_SWEEP_TIME: str = "23:59"
    ABSENCE_SWEEP_RETRY_SECONDS: float = 3600.0

    RUN_MIGRATIONS_ON_STARTUP: bool = False

    APP_BASE_URL: str = "http://localhost:8000"
    LEAVE_APPROVER_EMAIL: str = "admin@company.com"

    # When disabled, outgoing mail is written to the log instead of sent
    SMTP_ENABLED: bool = False
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "hr@company.com"

    # Employee documents; keys inside are YYYY/MM/DD/<uuid><ext>
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]


settings = Settings()
