"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Protocol, Sequence, Type, TypeVar

from shared_kernel import DomainEvent

if TYPE_CHECKING:
    from .domain import Booking, Room

T_Event = TypeVar("T_Event", bound=DomainEvent)


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IRoomStore(Protocol):
    """
    Интерфейс хранилища номеров. Ключ хранения - номер комнаты.

    Все методы сообщают о недоступности хранилища через
    StoreUnavailableException.
    """

    def load_all(self) -> List[Room]: ...
    def save(self, room: Room) -> None: ...
    def update_availability(self, room: Room) -> None: ...
    def delete(self, room_number: int) -> None: ...


class IBookingStore(Protocol):
    """Интерфейс хранилища бронирований. Ключ хранения - идентификатор брони."""

    def load_all(self, known_rooms: Sequence[Room]) -> List[Booking]: ...
    def save(self, booking: Booking) -> None: ...
