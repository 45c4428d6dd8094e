"""
Общее ядро (Shared Kernel) для системы бронирования отеля.

Содержит общие типы данных и утилиты, используемые движком бронирования
и его инфраструктурой.
"""

from .domain import (
    ConflictException,
    DateRange,
    DomainEvent,
    # Исключения
    DomainException,
    ErrorCode,
    InvalidArgumentException,
    InvalidStateException,
    # Основные классы
    Money,
    NotFoundException,
    StoreUnavailableException,
    days_before,
    # Утилиты
    now,
    today,
)

__all__ = [
    # Основные классы
    "Money",
    "DateRange",
    "DomainEvent",
    "ErrorCode",
    # Исключения
    "DomainException",
    "NotFoundException",
    "ConflictException",
    "InvalidArgumentException",
    "InvalidStateException",
    "StoreUnavailableException",
    # Утилиты
    "now",
    "today",
    "days_before",
]
