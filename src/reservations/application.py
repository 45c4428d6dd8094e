"""
Прикладной слой контекста бронирования.

Содержит движок бронирования, который владеет каталогом номеров и журналом
бронирований, а также DTO для передачи результатов внешнему слою (UI/API).
"""

import threading
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel
from shared_kernel import (
    ConflictException,
    DateRange,
    DomainException,
    ErrorCode,
    Money,
    NotFoundException,
    StoreUnavailableException,
    today,
)

from . import interfaces as ports
from .config import EngineSettings
from .domain import (
    Booking,
    BookingStatus,
    CatalogPolicy,
    PaymentMethod,
    PricingPolicy,
    RefundPolicy,
    Room,
    RoomCategory,
    RoomRef,
    generate_booking_id,
)

# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO для представления бронирования."""

    id: str
    guest_name: str
    room_number: int
    room_category: RoomCategory
    check_in: date
    check_out: date
    nights: int
    status: BookingStatus
    payment_method: Optional[PaymentMethod]
    payment_date: Optional[date]
    total_price: Money

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            guest_name=booking.guest_name,
            room_number=booking.room.number,
            room_category=booking.room.category,
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.period.nights,
            status=booking.status,
            payment_method=booking.payment_method,
            payment_date=booking.payment_date,
            total_price=PricingPolicy.total_price(booking.room, booking.period),
        )


class OperationResult(BaseModel):
    """Результат команды движка: успех или ошибка с кодом и сообщением."""

    success: bool
    error: Optional[ErrorCode] = None
    message: str = ""
    booking: Optional[BookingDTO] = None
    data: Any = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls, message: str, booking: Optional[Booking] = None, data: Any = None
    ) -> "OperationResult":
        return cls(
            success=True,
            message=message,
            booking=BookingDTO.from_domain(booking) if booking else None,
            data=data,
        )

    @classmethod
    def failure(
        cls,
        exc: DomainException,
        booking: Optional[Booking] = None,
        data: Any = None,
    ) -> "OperationResult":
        return cls(
            success=False,
            error=exc.code,
            message=str(exc),
            booking=BookingDTO.from_domain(booking) if booking else None,
            data=data,
        )


# Сервис приложения


class ReservationEngine:
    """
    Движок бронирования номеров.

    Владеет каталогом номеров и журналом бронирований. Внешние вызывающие
    стороны меняют состояние только через команды движка; каждая команда
    выполняется под блокировкой экземпляра, поэтому проверка пересечений
    и последующее изменение атомарны.

    Команды возвращают OperationResult и не бросают доменных исключений.
    Запросы возвращают значения напрямую и бросают InvalidArgumentException
    при некорректном диапазоне дат.

    Изменения сначала применяются в памяти и только затем записываются в
    хранилища. Если хранилище недоступно, изменение в памяти сохраняется,
    а результат содержит ошибку STORE_UNAVAILABLE; повторить запись
    можно через save_all().
    """

    def __init__(
        self,
        room_store: ports.IRoomStore,
        booking_store: ports.IBookingStore,
        logger: ports.ILogger,
        event_bus: ports.IEventBus,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], date] = today,
    ):
        """Инициализирует движок с пустым каталогом."""
        self._room_store = room_store
        self._booking_store = booking_store
        self._logger = logger
        self._event_bus = event_bus
        self._settings = settings or EngineSettings()
        self._clock = clock
        self._refund_policy = RefundPolicy(
            full_refund_days_before=self._settings.refund_full_days_before,
            partial_rate=self._settings.partial_refund_rate,
        )
        self._lock = threading.RLock()

        # Списки хранят порядок создания, словари - индексы для поиска
        self._rooms: List[Room] = []
        self._rooms_by_number: Dict[int, Room] = {}
        self._bookings: List[Booking] = []
        self._bookings_by_id: Dict[str, Booking] = {}

    @property
    def event_bus(self) -> ports.IEventBus:
        return self._event_bus

    @property
    def refund_policy(self) -> RefundPolicy:
        return self._refund_policy

    # --- Каталог и загрузка ---

    def initialize_catalog(self) -> OperationResult:
        """
        Заполняет каталог фиксированными номерами.

        Повторный вызов не создает дубликатов: номера, уже присутствующие
        в каталоге, пропускаются. В data возвращается число добавленных номеров.
        """
        with self._lock:
            added = []
            for room in CatalogPolicy.build_rooms(self._settings.currency):
                if room.number in self._rooms_by_number:
                    continue
                self._add_room(room)
                added.append(room)

            try:
                for room in added:
                    self._room_store.save(room)
            except StoreUnavailableException as e:
                self._logger.error("Catalog not persisted", error=str(e))
                return OperationResult.failure(e, data=len(added))

            self._logger.info("Catalog initialized", rooms_added=len(added))
            return OperationResult.ok(
                f"Добавлено номеров: {len(added)}", data=len(added)
            )

    def load(self) -> OperationResult:
        """Заменяет состояние в памяти данными из хранилищ."""
        with self._lock:
            try:
                rooms = self._room_store.load_all()
                bookings = self._booking_store.load_all(rooms)
            except StoreUnavailableException as e:
                self._logger.error("Failed to load state", error=str(e))
                return OperationResult.failure(e)

            self._rooms = []
            self._rooms_by_number = {}
            for room in rooms:
                self._add_room(room)

            self._bookings = []
            self._bookings_by_id = {}
            for booking in bookings:
                self._add_booking(booking)

            counts = {"rooms": len(self._rooms), "bookings": len(self._bookings)}
            self._logger.info("State loaded", **counts)
            return OperationResult.ok("Данные загружены", data=counts)

    def save_all(self) -> OperationResult:
        """Записывает все номера и бронирования в хранилища."""
        with self._lock:
            try:
                for room in self._rooms:
                    self._room_store.save(room)
                for booking in self._bookings:
                    self._booking_store.save(booking)
            except StoreUnavailableException as e:
                self._logger.error("Failed to save state", error=str(e))
                return OperationResult.failure(e)

            self._logger.info(
                "State saved", rooms=len(self._rooms), bookings=len(self._bookings)
            )
            return OperationResult.ok("Данные сохранены")

    # --- Запросы ---

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms)

    def list_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        with self._lock:
            return [b for b in self._bookings if status is None or b.status == status]

    def find_by_id(self, booking_id: str) -> Optional[Booking]:
        """Находит бронирование по идентификатору."""
        with self._lock:
            return self._bookings_by_id.get(booking_id)

    def available_rooms(self, check_in: date, check_out: date) -> List[Room]:
        """
        Возвращает номера, свободные на период [check_in, check_out).

        Доступность определяется только отсутствием пересекающихся активных
        бронирований; флаг is_available в расчёте не участвует.
        """
        period = DateRange(check_in=check_in, check_out=check_out)
        with self._lock:
            return [
                room
                for room in self._rooms
                if not self._is_room_booked(room.number, period)
            ]

    def calculate_total_price(
        self, room: Room, check_in: date, check_out: date
    ) -> Money:
        """Стоимость проживания: число ночей * цена за ночь."""
        return PricingPolicy.total_price(
            room, DateRange(check_in=check_in, check_out=check_out)
        )

    def calculate_refund_amount(
        self, booking: Booking, today: Optional[date] = None
    ) -> Money:
        """Сумма возврата при отмене в день today (по умолчанию - сегодня)."""
        return self._refund_policy.refund_amount(booking, today or self._clock())

    def generate_booking_id(self) -> str:
        with self._lock:
            return generate_booking_id(
                self._settings.booking_id_length, self._bookings_by_id
            )

    # --- Команды ---

    def book_room(
        self,
        room: Union[Room, RoomRef],
        guest_name: str,
        booking_id: Optional[str],
        check_in: date,
        check_out: date,
    ) -> OperationResult:
        """
        Бронирует номер на период [check_in, check_out).

        Номер ищется в каталоге по номеру и категории. Если booking_id
        не передан, идентификатор генерируется движком.
        """
        with self._lock:
            try:
                period = DateRange(check_in=check_in, check_out=check_out)
                target = self._get_room(
                    RoomRef(number=room.number, category=room.category)
                )
                booking_id = booking_id or generate_booking_id(
                    self._settings.booking_id_length, self._bookings_by_id
                )
                if booking_id in self._bookings_by_id:
                    raise ConflictException(
                        f"Бронирование с идентификатором {booking_id} уже существует"
                    )
                if self._is_room_booked(target.number, period):
                    raise ConflictException(
                        f"Номер {target.number} ({target.category.value}) "
                        f"недоступен на выбранные даты"
                    )
                booking = Booking.create(target, guest_name, booking_id, period)
            except DomainException as e:
                return self._reject("book_room", e, room_number=room.number)

            self._add_booking(booking)
            target.is_available = False
            return self._commit(
                "Room booked", "Номер забронирован", booking, rooms=[target]
            )

    def cancel_booking(self, booking_id: str) -> OperationResult:
        """
        Отменяет бронирование.

        Повторная отмена уже отменённого бронирования - ошибка INVALID_STATE.
        Сумма возврата здесь не рассчитывается (см. quote_refund).
        """
        with self._lock:
            try:
                booking = self._get_booking(booking_id)
                booking.cancel()
            except DomainException as e:
                return self._reject("cancel_booking", e, booking_id=booking_id)

            room = booking.room
            room.is_available = not self._has_active_bookings(room.number)
            return self._commit(
                "Booking cancelled", "Бронирование отменено", booking, rooms=[room]
            )

    def process_payment(self, booking_id: str, method: str) -> OperationResult:
        """Принимает оплату (Cash или Card) и подтверждает бронирование."""
        with self._lock:
            try:
                payment_method = PaymentMethod.parse(method)
                booking = self._get_booking(booking_id)
                booking.confirm(payment_method, self._clock())
            except DomainException as e:
                return self._reject(
                    "process_payment", e, booking_id=booking_id, method=method
                )

            return self._commit(
                "Payment processed", "Оплата принята", booking, rooms=[]
            )

    def quote_refund(
        self, booking_id: str, today: Optional[date] = None
    ) -> OperationResult:
        """Рассчитывает сумму возврата для бронирования по идентификатору."""
        with self._lock:
            try:
                booking = self._get_booking(booking_id)
            except DomainException as e:
                return self._reject("quote_refund", e, booking_id=booking_id)

            amount = self.calculate_refund_amount(booking, today)
            return OperationResult.ok(
                f"Сумма возврата: {amount}", booking=booking, data=amount
            )

    # --- Внутренние методы ---

    def _add_room(self, room: Room) -> None:
        if room.number in self._rooms_by_number:
            return
        self._rooms.append(room)
        self._rooms_by_number[room.number] = room

    def _add_booking(self, booking: Booking) -> None:
        self._bookings.append(booking)
        # При совпадении идентификаторов побеждает первое бронирование
        self._bookings_by_id.setdefault(booking.id, booking)

    def _get_room(self, ref: RoomRef) -> Room:
        room = self._rooms_by_number.get(ref.number)
        if room is None or not room.matches(ref):
            raise NotFoundException(
                f"Номер {ref.number} ({ref.category.value}) не существует"
            )
        return room

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings_by_id.get(booking_id)
        if booking is None:
            raise NotFoundException(f"Бронирование {booking_id} не найдено")
        return booking

    def _is_room_booked(self, room_number: int, period: DateRange) -> bool:
        return any(b.blocks(room_number, period) for b in self._bookings)

    def _has_active_bookings(self, room_number: int) -> bool:
        return any(
            b.is_active() and b.room.number == room_number for b in self._bookings
        )

    def _persist_room(self, room: Room) -> None:
        try:
            self._room_store.update_availability(room)
        except NotFoundException:
            self._room_store.save(room)

    def _reject(
        self, operation: str, exc: DomainException, **context: Any
    ) -> OperationResult:
        self._logger.warning(
            f"{operation} rejected", error=exc.code, reason=str(exc), **context
        )
        return OperationResult.failure(exc)

    def _commit(
        self, log_message: str, summary: str, booking: Booking, rooms: List[Room]
    ) -> OperationResult:
        for event in booking.pull_domain_events():
            self._event_bus.publish(event)

        try:
            for room in rooms:
                self._persist_room(room)
            self._booking_store.save(booking)
        except StoreUnavailableException as e:
            self._logger.error(
                f"{log_message}, but not persisted",
                booking_id=booking.id,
                error=str(e),
            )
            return OperationResult.failure(e, booking=booking)

        self._logger.info(
            log_message,
            booking_id=booking.id,
            room_number=booking.room.number,
            status=booking.status.value,
        )
        return OperationResult.ok(summary, booking=booking)
