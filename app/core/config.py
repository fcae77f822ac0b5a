from pydantic_settings import BaseSettings
from pydantic import model_validator
import os


class Settings(BaseSettings):
    APP_ENV: str = "local"
    LOCAL_URL: str = "http://127.0.0.1:8000"

    # Users table (identity + roles)
    DATABASE_URL: str = "sqlite:///./church_ledger.db"

    # Auth
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    SUPER_ADMIN_EMAILS: str = ""

    # "google" talks to the real APIs, "memory" keeps everything in-process
    SHEETS_BACKEND: str = "google"
    DRIVE_BACKEND: str = "google"

    # Google Sheets
    GOOGLE_SHEET_ID: str = ""
    GOOGLE_SHEET_NAME: str = "Transaction"
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str = ""
    GOOGLE_PRIVATE_KEY: str = ""
    GOOGLE_HTTP_NUM_RETRIES: int = 0

    RECEIPT_SHEET_NAME: str = "Receipt"
    CASH_IN_HAND_SHEET_NAME: str = "CashInHand"
    AUDIT_LOG_SHEET_NAME: str = "audit_log"

    # Google Drive
    GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL: str = ""
    GOOGLE_DRIVE_PRIVATE_KEY: str = ""
    GOOGLE_DRIVE_FOLDER_ID: str = ""
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Notifications
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_SENDER: str = ""

    APP_TIMEZONE: str = "Asia/Taipei"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    class Config:
        env_file = ".env" if os.getenv("APP_ENV", "local") == "local" else ".env.prod"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @model_validator(mode='after')
    def normalize_google_credentials(self):
        """Unescape private keys pasted as one line and let Drive reuse the Sheets account."""
        self.GOOGLE_PRIVATE_KEY = self.GOOGLE_PRIVATE_KEY.replace("\\n", "\n")
        self.GOOGLE_DRIVE_PRIVATE_KEY = self.GOOGLE_DRIVE_PRIVATE_KEY.replace("\\n", "\n")

        if not self.GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL:
            self.GOOGLE_DRIVE_SERVICE_ACCOUNT_EMAIL = self.GOOGLE_SERVICE_ACCOUNT_EMAIL
        if not self.GOOGLE_DRIVE_PRIVATE_KEY:
            self.GOOGLE_DRIVE_PRIVATE_KEY = self.GOOGLE_PRIVATE_KEY
        return self

    @property
    def super_admin_emails(self) -> set[str]:
        return {e.strip().lower() for e in self.SUPER_ADMIN_EMAILS.split(",") if e.strip()}

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
