"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ErrorCode(str, Enum):
    """Коды ошибок, которые движок возвращает вызывающей стороне."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_STATE = "invalid_state"
    STORE_UNAVAILABLE = "store_unavailable"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    code: Optional[ErrorCode] = None


class NotFoundException(DomainException):
    """Номер или бронирование не найдены."""

    code = ErrorCode.NOT_FOUND


class ConflictException(DomainException):
    """Номер недоступен или уже забронирован на пересекающиеся даты."""

    code = ErrorCode.CONFLICT


class InvalidArgumentException(DomainException):
    """Некорректные входные данные (способ оплаты, диапазон дат и т.п.)."""

    code = ErrorCode.INVALID_ARGUMENT


class InvalidStateException(DomainException):
    """Операция недопустима в текущем статусе бронирования."""

    code = ErrorCode.INVALID_STATE


class StoreUnavailableException(DomainException):
    """Хранилище недоступно (ошибка ввода-вывода или повреждённые данные)."""

    code = ErrorCode.STORE_UNAVAILABLE


Number = Union[int, float, Decimal]


class Money(BaseModel):
    """Денежная сумма с валютой."""

    amount: Decimal = Field(..., ge=0, description="Сумма денег")
    currency: str = Field(
        default="USD", max_length=3, description="Код валюты (ISO 4217)"
    )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно складывать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя складывать разные валюты")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно вычитать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя вычитать разные валюты")
        if self.amount < other.amount:
            raise ValueError("Результат не может быть отрицательным")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, multiplier: Number) -> "Money":
        if isinstance(multiplier, bool) or not isinstance(
            multiplier, (int, float, Decimal)
        ):
            raise TypeError("Множитель должен быть числом")
        if multiplier < 0:
            raise ValueError("Множитель не может быть отрицательным")
        return Money(
            amount=self.amount * Decimal(str(multiplier)), currency=self.currency
        )

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount=Decimal("0"), currency=currency)


class DateRange(BaseModel):
    """
    Полуоткрытый диапазон дат [check_in, check_out).

    День выезда одного бронирования может совпадать с днём заезда
    следующего: такие диапазоны не пересекаются.
    """

    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "DateRange":
        # InvalidArgumentException не наследует ValueError, поэтому pydantic
        # пробрасывает его как есть, без обёртки в ValidationError.
        if self.check_out <= self.check_in:
            raise InvalidArgumentException("Дата выезда должна быть позже даты заезда")
        return self

    @property
    def nights(self) -> int:
        """Количество ночей в бронировании."""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        """Проверяет пересечение с другим диапазоном."""
        return not (
            self.check_out <= other.check_in or self.check_in >= other.check_out
        )


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: now())
    event_type: str = ""

    @model_validator(mode="after")
    def _default_event_type(self) -> "DomainEvent":
        if not self.event_type:
            self.event_type = type(self).__name__
        return self


# Общие утилиты
def now() -> datetime:
    """Возвращает текущую дату и время."""
    return datetime.now()


def today() -> date:
    """Возвращает текущую дату."""
    return date.today()


def days_before(day: date, days: int) -> date:
    return day - timedelta(days=days)
