"""
Cafe Engine — Configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "cafe-engine"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8010
    LOG_LEVEL: str = "INFO"

    # ── REST backend (menu, orders, staff, payroll, ...) ─────
    BACKEND_API_URL: str = "http://localhost:5000"
    BACKEND_API_TOKEN: str = ""
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Till ──────────────────────────────────────────────────
    STATE_BACKEND: str = "redis"          # till + reset gate: "redis" or "memory"
    CASH_FLOAT_START: float = 1000.0
    CASH_FLOAT_KEY: str = "till:float"
    CASH_FLOAT_LEDGER_KEY: str = "till:ledger"
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Business rules ────────────────────────────────────────
    CURRENCY_SYMBOL: str = "₱"
    DISCOUNT_RATE: float = 0.10           # senior citizen / PWD
    LOW_STOCK_THRESHOLD: int = 5
    STANDARD_SHIFT_HOURS: float = 8.0
    OVERTIME_MULTIPLIER: float = 1.25
    MAX_SHIFT_HOURS: float = 24.0
    EXPENSE_RESET_KEY: str = "expenses:last_reset_check"

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
