"""
Модуль контекста бронирования (Booking Context).

Отвечает за управление бронированием номеров в отеле, включая:
- Создание и отмену бронирований
- Проверку доступности номеров
- Приём оплаты и расчёт возврата
"""

from .application import BookingDTO, OperationResult, ReservationEngine
from .bootstrap import build_engine
from .config import EngineSettings, StoreBackend
from .domain import (
    Booking,
    BookingStatus,
    PaymentMethod,
    Room,
    RoomCategory,
    RoomRef,
)

__all__ = [
    "ReservationEngine",
    "OperationResult",
    "BookingDTO",
    "EngineSettings",
    "StoreBackend",
    "build_engine",
    "Booking",
    "BookingStatus",
    "PaymentMethod",
    "Room",
    "RoomCategory",
    "RoomRef",
]
