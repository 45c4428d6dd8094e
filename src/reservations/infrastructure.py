"""
Инфраструктурный слой контекста бронирования.

Содержит реализации хранилищ и других интерфейсов,
зависимые от конкретных технологий (файлы, логирование и т.д.).
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from shared_kernel import (
    DateRange,
    DomainEvent,
    InvalidArgumentException,
    Money,
    NotFoundException,
    StoreUnavailableException,
)

from . import interfaces as ports
from .domain import Booking, BookingStatus, PaymentMethod, Room, RoomCategory

Record = Dict[str, Any]

# Ошибки разбора записи, которые означают повреждённые данные в хранилище
_RECORD_ERRORS = (
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
    InvalidOperation,
    InvalidArgumentException,
)


# Преобразование сущностей в записи хранилища и обратно.
# Имена полей повторяют колонки таблиц rooms и bookings.


def room_to_record(room: Room) -> Record:
    return {
        "room_number": room.number,
        "type": room.category.name,
        "price_per_night": str(room.price_per_night.amount),
        "currency": room.price_per_night.currency,
        "is_available": room.is_available,
    }


def room_from_record(record: Record) -> Room:
    return Room(
        number=int(record["room_number"]),
        category=RoomCategory[record["type"]],
        price_per_night=Money(
            amount=Decimal(str(record["price_per_night"])),
            currency=record.get("currency", "USD"),
        ),
        is_available=bool(record["is_available"]),
    )


def booking_to_record(booking: Booking) -> Record:
    return {
        "booking_id": booking.id,
        "guest_name": booking.guest_name,
        "room_number": booking.room.number,
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "status": booking.status.value,
        "payment_method": (
            booking.payment_method.value if booking.payment_method else None
        ),
        "payment_date": (
            booking.payment_date.isoformat() if booking.payment_date else None
        ),
        "created_at": booking.created_at.isoformat(),
    }


# Статусы, которые встречаются в ранее выгруженных таблицах bookings
LEGACY_STATUSES = {"notconfirmed": BookingStatus.PENDING}


def parse_status(raw: str) -> BookingStatus:
    """Разбирает статус бронирования без учёта регистра."""
    key = raw.strip().lower()
    if key in LEGACY_STATUSES:
        return LEGACY_STATUSES[key]
    for status in BookingStatus:
        if status.value.lower() == key:
            return status
    raise ValueError(f"Неизвестный статус бронирования: {raw!r}")


def booking_from_record(record: Record, room: Room) -> Booking:
    payment_method = record.get("payment_method")
    payment_date = record.get("payment_date")
    created_at = record.get("created_at")
    booking = Booking(
        id=record["booking_id"],
        guest_name=record["guest_name"],
        room=room,
        period=DateRange(
            check_in=date.fromisoformat(record["check_in"]),
            check_out=date.fromisoformat(record["check_out"]),
        ),
        status=parse_status(record["status"]),
        payment_method=PaymentMethod.parse(payment_method) if payment_method else None,
        payment_date=date.fromisoformat(payment_date) if payment_date else None,
    )
    if created_at:
        booking.created_at = datetime.fromisoformat(created_at)
    return booking


class InMemoryRecords:
    """Хранение записей в памяти процесса."""

    def __init__(self) -> None:
        self._records: List[Record] = []

    def _read_records(self) -> List[Record]:
        return [dict(record) for record in self._records]

    def _write_records(self, records: List[Record]) -> None:
        self._records = [dict(record) for record in records]


class JsonFileRepository:
    """Базовый класс для хранилищ, работающих с JSON-файлами."""

    def __init__(self, file_path: str):
        """
        Инициализирует хранилище.

        Args:
            file_path: Путь к JSON-файлу с данными
        """
        self._file_path = Path(file_path)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _read_records(self) -> List[Record]:
        """Загружает записи из JSON-файла."""
        if not self._file_path.exists():
            return []

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = f.read()
            if not raw_data.strip():
                return []
            items = json.loads(raw_data)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailableException(
                f"Не удалось прочитать {self._file_path}: {e}"
            ) from e

        if not isinstance(items, list) or not all(
            isinstance(item, dict) for item in items
        ):
            raise StoreUnavailableException(
                f"Файл {self._file_path} должен содержать список записей"
            )
        return items

    def _write_records(self, records: List[Record]) -> None:
        """
        Сохраняет записи в JSON-файл.

        Данные пишутся во временный файл рядом с целевым и затем заменяют его.
        """
        tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False, default=str)
            tmp_path.replace(self._file_path)
        except OSError as e:
            raise StoreUnavailableException(
                f"Не удалось записать {self._file_path}: {e}"
            ) from e


class RoomStoreMixin:
    """Операции хранилища номеров поверх _read_records/_write_records."""

    _read_records: Callable[[], List[Record]]
    _write_records: Callable[[List[Record]], None]

    def load_all(self) -> List[Room]:
        try:
            return [room_from_record(record) for record in self._read_records()]
        except _RECORD_ERRORS as e:
            raise StoreUnavailableException(f"Повреждённая запись номера: {e}") from e

    def save(self, room: Room) -> None:
        records = [
            r for r in self._read_records() if r.get("room_number") != room.number
        ]
        records.append(room_to_record(room))
        self._write_records(records)

    def update_availability(self, room: Room) -> None:
        records = self._read_records()
        for record in records:
            if record.get("room_number") == room.number:
                record["is_available"] = room.is_available
                self._write_records(records)
                return
        raise NotFoundException(f"Номер {room.number} отсутствует в хранилище")

    def delete(self, room_number: int) -> None:
        records = self._read_records()
        remaining = [r for r in records if r.get("room_number") != room_number]
        if len(remaining) == len(records):
            raise NotFoundException(f"Номер {room_number} отсутствует в хранилище")
        self._write_records(remaining)


class BookingStoreMixin:
    """Операции хранилища бронирований поверх _read_records/_write_records."""

    _read_records: Callable[[], List[Record]]
    _write_records: Callable[[List[Record]], None]

    def load_all(self, known_rooms: Sequence[Room]) -> List[Booking]:
        rooms_by_number = {room.number: room for room in known_rooms}
        bookings = []
        try:
            for record in self._read_records():
                room = rooms_by_number.get(record.get("room_number"))
                if room is None:
                    # Бронирования несуществующих номеров пропускаются
                    continue
                bookings.append(booking_from_record(record, room))
        except _RECORD_ERRORS as e:
            raise StoreUnavailableException(
                f"Повреждённая запись бронирования: {e}"
            ) from e
        return bookings

    def save(self, booking: Booking) -> None:
        records = [
            r for r in self._read_records() if r.get("booking_id") != booking.id
        ]
        records.append(booking_to_record(booking))
        self._write_records(records)


class InMemoryRoomStore(RoomStoreMixin, InMemoryRecords, ports.IRoomStore):
    """Реализация хранилища номеров в памяти."""


class InMemoryBookingStore(BookingStoreMixin, InMemoryRecords, ports.IBookingStore):
    """Реализация хранилища бронирований в памяти."""


class JsonFileRoomStore(RoomStoreMixin, JsonFileRepository, ports.IRoomStore):
    """Хранилище номеров в JSON-файле."""


class JsonFileBookingStore(BookingStoreMixin, JsonFileRepository, ports.IBookingStore):
    """Хранилище бронирований в JSON-файле."""


class LoggingLogger(ports.ILogger):
    """Реализация логгера поверх стандартного модуля logging."""

    def __init__(self, name: str = "reservations"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, context: Dict[str, Any]) -> None:
        if context:
            payload = json.dumps(context, default=str, ensure_ascii=False)
            message = f"{message} | {payload}"
        self._logger.log(level, message)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], list] = {}
        self._logger = logger or LoggingLogger()

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        event_type = type(event)
        if event_type not in self._subscribers:
            self._logger.debug(f"No subscribers for event type {event_type.__name__}")
            return

        self._logger.debug(
            f"Publishing event: {event_type.__name__}", event=event.model_dump()
        )

        for handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event_type.__name__}",
                    error=str(e),
                    event=event.model_dump(),
                )

    def subscribe(self, event_type: Type[DomainEvent], handler) -> None:
        """Подписывает обработчик на события указанного типа."""
        self._subscribers.setdefault(event_type, []).append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")
