from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Tour Booking API"
    LOG_LEVEL: str = "INFO"
    # Comma-separated origins for CORS (e.g. https://egypt-excursionsonline.com,https://admin.egypt-excursionsonline.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "bookings@tours.local"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""
    EMAIL_MAX_ATTEMPTS: int = 5

    PUBLIC_BASE_URL: str = ""  # e.g. https://egypt-excursionsonline.com - links in emails
    ADMIN_ALERT_EMAIL: str = ""  # fallback when the tenant has no admin address

    # Multi-tenant: X-Tenant-ID header wins, this is used otherwise
    DEFAULT_TENANT_ID: str = "default"

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""

    # Checkout throttles (milliseconds)
    CHECKOUT_ITEM_DELAY_MS: int = 100
    REFERENCE_RETRY_DELAY_MS: int = 50


settings = Settings()
