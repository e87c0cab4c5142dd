from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Raygreen Hotel API"
    # Comma-separated origins for CORS (e.g. https://raygreenhotel.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Hosted Postgres gives postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Raygreen Hotel <noreply@raygreenhotel.com>"
    # Comma-separated staff inboxes for new-booking alerts
    STAFF_ALERT_EMAILS: str = "reservations@raygreenhotel.com"
    # Outbox retry worker; off means each notification is attempted at most once
    EMAIL_RETRY_ENABLED: bool = False
    EMAIL_MAX_ATTEMPTS: int = 3

    STRIPE_SECRET_KEY: str = ""
    STRIPE_CURRENCY: str = "usd"
    KES_PER_USD: int = 130  # prices are stored in KES, checkout charges in STRIPE_CURRENCY

    CLIENT_BASE_URL: str = "http://localhost:8080"  # used for checkout success/cancel redirects

    PENDING_BOOKING_TTL_HOURS: int = 24
    SPECIAL_REQUESTS_MAX_LENGTH: int = 1000

    @property
    def staff_alert_recipients(self) -> list[str]:
        return [e.strip() for e in self.STAFF_ALERT_EMAILS.split(",") if e.strip()]


settings = Settings()
