from decimal import Decimal

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "FOP Permit API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./fop_permits.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Permit fee defaults, used when a tenant has no fee configuration
    default_currency: str = "USD"
    permit_base_fee: Decimal = Decimal("150.00")
    permit_per_seat_fee: Decimal = Decimal("10.00")
    permit_per_kg_fee: Decimal = Decimal("0.02")
    one_time_multiplier: Decimal = Decimal("1.0")
    blanket_multiplier: Decimal = Decimal("2.5")
    emergency_multiplier: Decimal = Decimal("0.5")

    document_expiry_warning_days: int = 30
    document_storage_path: str = "./uploads/documents"
    max_document_size_mb: int = 10
    allowed_document_types: str = "application/pdf,image/jpeg,image/png"

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

    @property
    def allowed_document_type_list(self) -> list[str]:
        return [t.strip() for t in self.allowed_document_types.split(",") if t.strip()]


settings = Settings()
