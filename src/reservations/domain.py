"""
Доменная модель контекста бронирования.

Содержит сущности номера и бронирования, доменные события
и политики (каталог номеров, расчёт стоимости и возврата).
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Container, List, Optional, Tuple
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
)
from shared_kernel import (
    DateRange,
    DomainEvent,
    InvalidArgumentException,
    InvalidStateException,
    Money,
    days_before,
    now,
)


class RoomCategory(str, Enum):
    """Категории номеров в отеле."""

    STANDARD = "Standard"
    DELUXE = "Deluxe"
    SUITE = "Suite"

    @property
    def description(self) -> str:
        return self.value


class BookingStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    """Способы оплаты."""

    CASH = "Cash"
    CARD = "Card"

    @classmethod
    def parse(cls, raw: str) -> "PaymentMethod":
        """Разбирает способ оплаты без учёта регистра."""
        for method in cls:
            if isinstance(raw, str) and raw.strip().lower() == method.value.lower():
                return method
        raise InvalidArgumentException(
            f"Недопустимый способ оплаты: {raw!r}. Используйте 'cash' или 'card'"
        )


class RoomRef(BaseModel):
    """Ссылка на номер: номер комнаты и категория."""

    model_config = ConfigDict(frozen=True)

    number: int
    category: RoomCategory


class Room(BaseModel):
    """Номер в отеле."""

    number: int = Field(..., gt=0)  # Номер комнаты (например, 101, 205)
    category: RoomCategory
    price_per_night: Money
    # Подсказка для отображения: у номера нет активных бронирований.
    # Доступность на даты всегда определяется проверкой пересечений.
    is_available: bool = True

    @property
    def ref(self) -> RoomRef:
        return RoomRef(number=self.number, category=self.category)

    def matches(self, ref: RoomRef) -> bool:
        """Проверяет, соответствует ли номер ссылке (номер + категория)."""
        return self.number == ref.number and self.category == ref.category


class BookingCreated(DomainEvent):
    """Событие создания бронирования."""

    booking_id: str
    room_number: int
    guest_name: str
    period: DateRange


class BookingConfirmed(DomainEvent):
    """Событие подтверждения бронирования (после оплаты)."""

    booking_id: str
    payment_method: PaymentMethod
    payment_date: date


class BookingCancelled(DomainEvent):
    """Событие отмены бронирования."""

    booking_id: str
    room_number: int
    previous_status: BookingStatus


class Booking(BaseModel):
    """Бронирование номера в отеле."""

    id: str = Field(..., min_length=1)
    guest_name: str
    room: Room  # Тот же объект, что и в каталоге движка
    period: DateRange
    status: BookingStatus = BookingStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    payment_date: Optional[date] = None
    created_at: datetime = Field(default_factory=now)
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @field_validator("guest_name")
    @classmethod
    def guest_name_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise InvalidArgumentException("Имя гостя не может быть пустым")
        return v.strip()

    @property
    def check_in(self) -> date:
        return self.period.check_in

    @property
    def check_out(self) -> date:
        return self.period.check_out

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return list(self._domain_events)

    def pull_domain_events(self) -> List[DomainEvent]:
        """Возвращает накопленные события и очищает список."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def is_active(self) -> bool:
        """Активным считается любое неотменённое бронирование."""
        return self.status != BookingStatus.CANCELLED

    def blocks(self, room_number: int, period: DateRange) -> bool:
        """Занимает ли это бронирование номер на указанный период."""
        return (
            self.is_active()
            and self.room.number == room_number
            and self.period.overlaps(period)
        )

    def confirm(self, method: PaymentMethod, paid_on: date) -> None:
        """Подтверждает бронирование после оплаты."""
        if self.status != BookingStatus.PENDING:
            raise InvalidStateException(
                f"Бронирование {self.id} уже подтверждено или отменено "
                f"(статус {self.status.value})"
            )

        self.status = BookingStatus.CONFIRMED
        self.payment_method = method
        self.payment_date = paid_on
        self._domain_events.append(
            BookingConfirmed(
                booking_id=self.id, payment_method=method, payment_date=paid_on
            )
        )

    def cancel(self) -> None:
        """Отменяет бронирование."""
        if self.status == BookingStatus.CANCELLED:
            raise InvalidStateException(f"Бронирование {self.id} уже отменено")

        previous = self.status
        self.status = BookingStatus.CANCELLED
        self._domain_events.append(
            BookingCancelled(
                booking_id=self.id,
                room_number=self.room.number,
                previous_status=previous,
            )
        )

    @classmethod
    def create(
        cls, room: Room, guest_name: str, booking_id: str, period: DateRange
    ) -> "Booking":
        """Создает новое бронирование в статусе PENDING."""
        try:
            booking = cls(
                id=booking_id, guest_name=guest_name, room=room, period=period
            )
        except ValidationError as e:
            raise InvalidArgumentException(
                f"Некорректные данные бронирования: {e}"
            ) from e
        booking._domain_events.append(
            BookingCreated(
                booking_id=booking.id,
                room_number=room.number,
                guest_name=booking.guest_name,
                period=period,
            )
        )
        return booking


def generate_booking_id(length: int = 8, existing: Container[str] = ()) -> str:
    """
    Генерирует короткий идентификатор бронирования.

    Args:
        length: Длина идентификатора (от 5 до 32 символов)
        existing: Уже занятые идентификаторы, которые нельзя выдавать повторно
    """
    if not 5 <= length <= 32:
        raise InvalidArgumentException("Длина идентификатора должна быть от 5 до 32")

    while True:
        candidate = uuid4().hex[:length].upper()
        if candidate not in existing:
            return candidate


class CatalogPolicy:
    """Фиксированный состав номеров отеля."""

    ROOM_RANGES: Tuple[Tuple[range, RoomCategory, Decimal], ...] = (
        (range(100, 125), RoomCategory.STANDARD, Decimal("50")),
        (range(200, 215), RoomCategory.DELUXE, Decimal("75")),
        (range(300, 310), RoomCategory.SUITE, Decimal("100")),
    )

    @classmethod
    def build_rooms(cls, currency: str = "USD") -> List[Room]:
        """Создает номера каталога в порядке номеров."""
        return [
            Room(
                number=number,
                category=category,
                price_per_night=Money(amount=price, currency=currency),
            )
            for numbers, category, price in cls.ROOM_RANGES
            for number in numbers
        ]


class PricingPolicy:
    """Расчёт стоимости проживания."""

    @staticmethod
    def total_price(room: Room, period: DateRange) -> Money:
        return room.price_per_night * period.nights


class RefundPolicy:
    """
    Правила возврата средств при отмене.

    Полный возврат, если отмена происходит раньше, чем за
    `full_refund_days_before` дней до заезда; иначе возвращается
    доля `partial_rate` от полной стоимости.
    """

    def __init__(
        self, full_refund_days_before: int = 2, partial_rate: Decimal = Decimal("0.5")
    ):
        if full_refund_days_before < 0:
            raise InvalidArgumentException(
                "Срок полного возврата не может быть отрицательным"
            )
        if not Decimal("0") <= partial_rate <= Decimal("1"):
            raise InvalidArgumentException("Доля возврата должна быть от 0 до 1")
        self.full_refund_days_before = full_refund_days_before
        self.partial_rate = partial_rate

    def is_full_refund(self, booking: Booking, on: date) -> bool:
        return on < days_before(booking.check_in, self.full_refund_days_before)

    def refund_amount(self, booking: Booking, on: date) -> Money:
        total = PricingPolicy.total_price(booking.room, booking.period)
        if self.is_full_refund(booking, on):
            return total
        return total * self.partial_rate
