# clinic/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Clinic Scheduling API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./clinic.db")

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS Settings
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")
    GZIP_MIN_SIZE: int = 500

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Scheduling
    SLOT_DURATION_MINUTES: int = 30
    MIN_ADVANCE_BOOKING_HOURS: int = 24
    MAX_ADVANCE_BOOKING_DAYS: int = 60
    WORKING_DAYS: List[str] = ["monday", "tuesday", "wednesday", "thursday", "friday"]
    DEFAULT_DAY_START: str = "09:00"
    DEFAULT_DAY_END: str = "18:00"
    DEFAULT_LUNCH_START: str = "12:00"
    DEFAULT_LUNCH_END: str = "13:00"
    REMINDER_HOURS_BEFORE: int = 24

    # Billing
    CURRENCY: str = "EUR"
    VAT_RATE: float = 0.20
    INVOICE_DUE_DAYS: int = 30
    LOYALTY_MIN_COMPLETED: int = 5
    LOYALTY_DISCOUNT_RATE: float = 0.10
    PAYMENT_METHOD_CARD_ENABLED: bool = True
    PAYMENT_METHOD_BANK_TRANSFER_ENABLED: bool = True
    PAYMENT_METHOD_CASH_ENABLED: bool = True
    PAYMENT_METHOD_CARD_FEES: float = 0.0
    PAYMENT_METHOD_BANK_TRANSFER_FEES: float = 0.0
    PAYMENT_METHOD_CASH_FEES: float = 0.0
    BANK_NAME: str = ""
    BANK_IBAN: str = ""
    BANK_BIC: str = ""

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 120
    BOOKING_RATE_LIMIT: int = 3
    BOOKING_RATE_WINDOW_SEC: int = 24 * 60 * 60
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)

    # Maintenance / task runner
    MAINTENANCE_FILE: str = "maintenance.lock"
    MAINTENANCE_DEFAULT_MESSAGE: str = "Site under maintenance"
    SCHEDULER_LOCK_FILE: str = "scheduler.lock"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    def payment_method_enabled(self, method: str) -> bool:
        return bool(getattr(self, f"PAYMENT_METHOD_{method.upper()}_ENABLED", False))

    def payment_method_fees(self, method: str) -> float:
        return float(getattr(self, f"PAYMENT_METHOD_{method.upper()}_FEES", 0.0))

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
