from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Luxehairplug Booking"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    BUSINESS_NAME: str = "Luxehairplug"
    # Stripe credentials (configure in .env)
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_WEBHOOK_TOLERANCE: int = 300
    STRIPE_TIMEOUT_SECONDS: float = 30.0
    STRIPE_MAX_NETWORK_RETRIES: int = 2
    # Deposit in minor units ($20.00)
    DEPOSIT_AMOUNT: int = 2000
    CURRENCY: str = "usd"
    # Optional JSON file replacing the built-in service list
    CATALOG_PATH: Optional[str] = None
    # Relay raw provider error messages to API callers
    EXPOSE_PROVIDER_ERRORS: bool = True
    CORS_ORIGINS: List[str] = ["*"]
    SENTRY_DSN: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
