"""Round engine, abilities and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import RoundPhase, Seat
from core.game.rules import GameRules
from core.game.abilities import Ability, AbilityResult, AbilityTarget
from core.game.engine import GameState, SeatState, WhitejackGame

__all__ = [
    "GameEvent",
    "EventType",
    "RoundPhase",
    "Seat",
    "GameRules",
    "Ability",
    "AbilityResult",
    "AbilityTarget",
    "GameState",
    "SeatState",
    "WhitejackGame",
]
