from decimal import Decimal

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Rental Lifecycle API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./rental_lifecycle.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    default_currency: str = "USD"

    # Shared secret for inbound provider webhooks (HMAC-SHA256 over the raw body)
    webhook_secret: str = ""

    # Fee policy (rates are fractions, fixed amounts are minor units)
    platform_fee_rate: Decimal = Decimal("0.029")
    processing_fee_rate: Decimal = Decimal("0.029")
    processing_fee_fixed: int = 30
    background_check_fee: int = 3500

    # Income-to-rent screening thresholds
    income_ratio_healthy: float = 40.0
    income_ratio_borderline: float = 30.0
    income_ratio_annualize: bool = False

    # Lease expiry and renewal policy
    expiry_urgent_days: int = 30
    expiry_warning_days: int = 90
    renewal_min_extension_months: int = 1
    renewal_candidate_days: int = 90
    max_escalation_percent: Decimal = Decimal("50")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql


settings = Settings()
