"""Game events for the event system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable


class EventType(Enum):
    """Types of game events.

    Values double as the ``type`` field of outbound gateway messages.
    """

    # Outbound room events
    ROOM_CREATED = "RoomCreated"
    ROUND_STARTED = "RoundStarted"
    STATE_CHANGED = "StateChanged"
    ABILITY_RESULT = "AbilityResult"
    REMATCH_PENDING = "RematchPending"
    OPPONENT_LEFT = "OpponentLeft"
    ACTION_REJECTED = "ActionRejected"

    # Engine events
    CARD_DRAWN = "CardDrawn"
    SEAT_STOOD = "SeatStood"
    SEAT_BUSTED = "SeatBusted"
    DECK_RESHUFFLED = "DeckReshuffled"
    ABILITY_USED = "AbilityUsed"
    ROUND_ENDED = "RoundEnded"
    REMATCH_REQUESTED = "RematchRequested"


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events are the primary communication mechanism between the core engine
    and the gateway. ``recipient`` addresses a single player; engine events
    leave it unset.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    recipient: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"

    def to_message(self) -> dict[str, Any]:
        """Convert the event to an outbound message."""
        return {"type": self.event_type.value, **self.data}


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for game events.

    Allows subscribing to specific event types or all events. Events are
    delivered synchronously and are not retained.
    """

    def __init__(self) -> None:
        """Initialize the event emitter."""
        self._handlers: dict[EventType | None, list[EventHandler]] = {}

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event: GameEvent) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event: The event to emit
        """
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

        for handler in self._handlers.get(None, []):
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        recipient: str | None = None,
        **data: Any,
    ) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            recipient: Player the event is addressed to
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data, recipient=recipient)
        self.emit(event)
        return event
