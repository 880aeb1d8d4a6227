from pathlib import Path
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # database
    DATABASE_URL: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "visa_checkout"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # public urls
    APP_URL: str = "https://migmainc.com"
    SITE_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # stripe ("test" or "production"), picked per deployment
    STRIPE_ENV: str = "test"
    STRIPE_SECRET_KEY_TEST: str = ""
    STRIPE_SECRET_KEY_PROD: str = ""
    STRIPE_WEBHOOK_SECRET_TEST: str = ""
    STRIPE_WEBHOOK_SECRET_PROD: str = ""
    STRIPE_API_VERSION: str = "2024-12-18.acacia"
    TERMS_VERSION: str = "v1.0-2025-01-15"

    # wise
    WISE_WEBHOOK_SECRET: Optional[str] = None
    WISE_PERSONAL_TOKEN: Optional[str] = None
    WISE_ENVIRONMENT: str = "sandbox"   # "sandbox" or "production"
    WISE_PROFILE_ID: Optional[str] = None   # looked up from /v1/profiles when unset
    WISE_TIMEOUT_SECONDS: float = 15.0

    # migma's receiving account for wise transfers
    WISE_MIGMA_ACCOUNT_HOLDER_NAME: str = "Migma Inc"
    WISE_MIGMA_CURRENCY: str = "USD"
    WISE_MIGMA_ACCOUNT_TYPE: str = "aba"   # aba / swift / iban / sort_code
    WISE_MIGMA_LEGAL_TYPE: str = "BUSINESS"
    WISE_MIGMA_ABA: Optional[str] = None
    WISE_MIGMA_ACCOUNT_NUMBER: Optional[str] = None
    WISE_MIGMA_SWIFT: Optional[str] = None
    WISE_MIGMA_IBAN: Optional[str] = None
    WISE_MIGMA_SORT_CODE: Optional[str] = None
    WISE_MIGMA_BANK_NAME: Optional[str] = None
    WISE_MIGMA_BANK_ADDRESS: Optional[str] = None
    WISE_MIGMA_CITY: Optional[str] = None
    WISE_MIGMA_STATE: str = "CA"
    WISE_MIGMA_POST_CODE: str = "94129"
    WISE_MIGMA_COUNTRY: str = "US"

    # exchange rate
    FX_API_URL: str = "https://api.exchangerate-api.com/v4/latest/USD"
    FX_TIMEOUT_SECONDS: float = 5.0

    # smtp
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_FROM_NAME: str = "MIGMA"
    SMTP_TIMEOUT_SECONDS: float = 10.0
    EMAIL_MAX_RETRIES: int = 3

    # generated contracts
    CONTRACTS_DIR: Path = Path("contracts")
    STORE_NAME: str = "MIGMA Visa Services"

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_stripe_production(self) -> bool:
        return self.STRIPE_ENV.lower() in ("production", "prod")

    @property
    def stripe_secret_key(self) -> str:
        if self.is_stripe_production:
            return self.STRIPE_SECRET_KEY_PROD
        return self.STRIPE_SECRET_KEY_TEST

    @property
    def stripe_webhook_secret(self) -> str:
        if self.is_stripe_production:
            return self.STRIPE_WEBHOOK_SECRET_PROD
        return self.STRIPE_WEBHOOK_SECRET_TEST

    @property
    def is_wise_production(self) -> bool:
        return self.WISE_ENVIRONMENT.lower() in ("production", "prod")

    @property
    def wise_api_url(self) -> str:
        if self.is_wise_production:
            return "https://api.wise.com"
        return "https://api.wise-sandbox.com"

    @property
    def wise_pay_url(self) -> str:
        if self.is_wise_production:
            return "https://wise.com"
        return "https://sandbox.wise.com"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
