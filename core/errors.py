"""Rejection taxonomy for room, turn and ability intents.

Every error here is local and recoverable: it is raised before any state is
mutated and is reported only to the caller that sent the intent.
"""


class GameError(Exception):
    """Base class for rejected intents."""

    code = "rejected"
    default_message = "Action rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class NotFound(GameError):
    """Unknown room code."""

    code = "not_found"
    default_message = "Room not found"


class RoomFull(GameError):
    """Both seats are already taken."""

    code = "full"
    default_message = "Room is full"


class NotSeated(GameError):
    """The caller does not own the seat it addressed."""

    code = "not_seated"
    default_message = "You are not seated in this room"


class OutOfTurn(GameError):
    """The seat acted while it was not its turn."""

    code = "out_of_turn"
    default_message = "Not your turn!"


class AlreadyStopped(GameError):
    """The seat has already stood or busted this round."""

    code = "already_stopped"
    default_message = "You already stood"


class InvalidTarget(GameError):
    """Ability parameters are missing or out of range."""

    code = "invalid_target"
    default_message = "Invalid card selection"


class AbilityExhausted(GameError):
    """No ability uses remain for the seat this round."""

    code = "ability_exhausted"
    default_message = "No special cards remaining!"


class NotReady(GameError):
    """The intent is premature for the round or rematch state."""

    code = "not_ready"
    default_message = "Room not ready"


class InsufficientFunds(GameError):
    """A wallet debit would leave a negative balance."""

    code = "insufficient_funds"
    default_message = "Insufficient balance"
