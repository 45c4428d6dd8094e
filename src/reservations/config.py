"""
Настройки движка бронирования.

Значения по умолчанию соответствуют правилам отеля; любое из них можно
переопределить переменной окружения с префиксом HOTEL_.
"""

import os
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from shared_kernel import InvalidArgumentException

ENV_PREFIX = "HOTEL_"


class StoreBackend(str, Enum):
    """Вид хранилища номеров и бронирований."""

    MEMORY = "memory"
    JSON = "json"


class EngineSettings(BaseModel):
    """Настройки движка бронирования."""

    store_backend: StoreBackend = StoreBackend.MEMORY
    data_dir: Path = Path("data")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    refund_full_days_before: int = Field(default=2, ge=0)
    partial_refund_rate: Decimal = Field(default=Decimal("0.5"), ge=0, le=1)
    booking_id_length: int = Field(default=8, ge=5, le=32)
    log_level: str = "INFO"
    initialize_catalog_on_start: bool = True

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Неизвестный уровень логирования: {v}")
        return level

    @property
    def rooms_file(self) -> Path:
        return self.data_dir / "rooms.json"

    @property
    def bookings_file(self) -> Path:
        return self.data_dir / "bookings.json"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """
        Создает настройки из переменных окружения.

        Учитываются только заданные переменные (например, HOTEL_STORE_BACKEND,
        HOTEL_DATA_DIR, HOTEL_BOOKING_ID_LENGTH); остальные поля берут
        значения по умолчанию.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw not in (None, ""):
                values[name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise InvalidArgumentException(f"Некорректные настройки: {e}") from e
