from __future__ import annotations
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "thank_ewe"

    APP_ENV: str = "local"
    LOG_FORMAT: str = ""
    PORT: int = 3000
    PUBLIC_DIR: str = "public"

    # Sessions
    SESSION_SECRET: str = "change-me-in-production"
    SESSION_COOKIE: str = "thank_ewe_session"
    SESSION_MAX_AGE: int = 24 * 60 * 60
    SESSION_BACKEND: str = "mongo"

    # Admin bootstrap password, hashed into the stored config on first login
    ADMIN_PASSWORD: Optional[str] = None

    # Provider defaults, overridden by the stored config
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""
    PAYPAL_CLIENT_ID: str = ""
    PAYPAL_CLIENT_SECRET: str = ""
    PAYPAL_API_BASE: str = "https://api-m.sandbox.paypal.com"

    # Mail
    GMAIL_USER: str = ""
    GMAIL_PASS: str = ""
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    MAIL_SENDER_NAME: str = "Thank Ewe"

    # Image hosting
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("prod", "production")


settings = Settings()
