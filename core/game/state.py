"""Round phases and seat identifiers."""

from enum import Enum, auto


class Seat(str, Enum):
    """The two fixed seats of a room."""

    A = "A"
    B = "B"

    @property
    def other(self) -> "Seat":
        """Return the opposing seat."""
        return Seat.B if self is Seat.A else Seat.A

    def __str__(self) -> str:
        return self.value


class RoundPhase(Enum):
    """
    Round state machine states.

    Flow: NOT_STARTED → IN_PROGRESS → ROUND_OVER → IN_PROGRESS → ...
    """

    # Room created, waiting for the second seat
    NOT_STARTED = auto()

    # Cards dealt, seats taking turns
    IN_PROGRESS = auto()

    # Both seats stopped, winner decided
    ROUND_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()

