from datetime import time

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "installment-automation"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/installments.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Shared secret for the scheduler-triggered job endpoint (X-API-Key)
    FUNCTION_API_KEY: str = ""

    # SMTP delivery transport
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "noreply@example.com"
    SMTP_FROM_NAME: str = "Payment Reminders"
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # Delivery retry policy: delay = initial * 2 ** attempt
    DELIVERY_MAX_RETRIES: int = 3
    DELIVERY_INITIAL_DELAY_SECONDS: float = 1.0

    # Tenant defaults
    DEFAULT_TIMEZONE: str = "UTC"
    DEFAULT_CUTOFF_TIME: time = time(17, 0)
    DEFAULT_DUE_SOON_DAYS: int = 4

    # Job health monitoring
    JOB_HEALTH_ALERT_THRESHOLD_HOURS: float = 25.0
    JOB_STUCK_RUNNING_MINUTES: int = 30

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.SMTP_HOST)


settings = Settings()
