"""
Общие фикстуры для тестов движка бронирования.
"""

from datetime import date

import pytest

from reservations import ReservationEngine, RoomCategory, RoomRef
from reservations.infrastructure import (
    InMemoryBookingStore,
    InMemoryEventBus,
    InMemoryRoomStore,
    LoggingLogger,
)

# Фиксированная "сегодняшняя" дата для детерминированных тестов
TODAY = date(2024, 1, 1)


@pytest.fixture
def room_store() -> InMemoryRoomStore:
    return InMemoryRoomStore()


@pytest.fixture
def booking_store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def logger() -> LoggingLogger:
    return LoggingLogger("reservations.tests")


@pytest.fixture
def event_bus(logger: LoggingLogger) -> InMemoryEventBus:
    return InMemoryEventBus(logger)


@pytest.fixture
def engine(
    room_store: InMemoryRoomStore,
    booking_store: InMemoryBookingStore,
    logger: LoggingLogger,
    event_bus: InMemoryEventBus,
) -> ReservationEngine:
    """Движок с заполненным каталогом и зафиксированными часами."""
    engine = ReservationEngine(
        room_store=room_store,
        booking_store=booking_store,
        logger=logger,
        event_bus=event_bus,
        clock=lambda: TODAY,
    )
    engine.initialize_catalog()
    return engine


@pytest.fixture
def room_100() -> RoomRef:
    return RoomRef(number=100, category=RoomCategory.STANDARD)
