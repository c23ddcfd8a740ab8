from pathlib import Path
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# -------------------------------------------------
# Explicitly load .env
# -------------------------------------------------

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ENVIRONMENT: str = "development"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ALGORITHM: str = "HS256"
    SQL_ECHO: bool = False

    # Mail: accept MAIL_* or SMTP_*
    MAIL_FROM: str = Field(default="", validation_alias=AliasChoices("MAIL_FROM", "SMTP_FROM_EMAIL"))
    MAIL_FROM_NAME: str = Field(default="Cooperative Back Office", validation_alias=AliasChoices("MAIL_FROM_NAME", "SMTP_FROM_NAME"))
    MAIL_USERNAME: str = Field(default="", validation_alias=AliasChoices("MAIL_USERNAME", "SMTP_USER"))
    MAIL_PASSWORD: str = Field(default="", validation_alias=AliasChoices("MAIL_PASSWORD", "SMTP_PASSWORD"))
    MAIL_SERVER: str = Field(default="", validation_alias=AliasChoices("MAIL_SERVER", "SMTP_HOST"))
    MAIL_PORT: int = Field(default=587, validation_alias=AliasChoices("MAIL_PORT", "SMTP_PORT"))

    # Loan rate defaults used until an admin saves loan settings (percent values)
    DEFAULT_INTEREST_RATE: float = Field(default=10.0, description="Annual interest rate in percent")
    DEFAULT_PROCESSING_FEE_RATE: float = Field(default=1.0, description="One-time processing fee in percent of principal")
    MIN_LOAN_AMOUNT: float = 1000.0
    MAX_LOAN_AMOUNT: float = 100000.0

    # Expired auction settlement loop (env: AUCTION_SETTLEMENT_INTERVAL_MINUTES)
    AUCTION_SETTLEMENT_INTERVAL_MINUTES: float = Field(default=15.0, description="Settlement loop interval in minutes")
    AUCTION_SETTLEMENT_ENABLED: bool = True

    # Bootstrap admin created on first startup when the admins table is empty
    DEFAULT_ADMIN_EMAIL: str = "superadmin@example.com"
    DEFAULT_ADMIN_PASSWORD: str = "Admin@123"

    class Config:
        extra = "ignore"
        env_file = str(ENV_PATH)
        env_file_encoding = "utf-8"


settings = Settings()
