"""
Сборка движка бронирования из настроек.
"""

import logging
from typing import Optional

from .application import ReservationEngine
from .config import EngineSettings, StoreBackend
from .infrastructure import (
    InMemoryBookingStore,
    InMemoryEventBus,
    InMemoryRoomStore,
    JsonFileBookingStore,
    JsonFileRoomStore,
    LoggingLogger,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Настраивает корневой логгер приложения."""
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)


def create_stores(settings: EngineSettings):
    """Создает хранилища номеров и бронирований согласно настройкам."""
    if settings.store_backend == StoreBackend.JSON:
        return (
            JsonFileRoomStore(str(settings.rooms_file)),
            JsonFileBookingStore(str(settings.bookings_file)),
        )
    return InMemoryRoomStore(), InMemoryBookingStore()


def build_engine(settings: Optional[EngineSettings] = None) -> ReservationEngine:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or EngineSettings.from_env()
    configure_logging(settings.log_level)

    # 1. Инфраструктура
    logger = LoggingLogger()
    room_store, booking_store = create_stores(settings)

    # 2. Движок с внедрёнными зависимостями
    engine = ReservationEngine(
        room_store=room_store,
        booking_store=booking_store,
        logger=logger,
        event_bus=InMemoryEventBus(logger),
        settings=settings,
    )

    # 3. Загрузка сохранённого состояния и первичное заполнение каталога
    engine.load()
    if settings.initialize_catalog_on_start and not engine.list_rooms():
        engine.initialize_catalog()

    return engine
