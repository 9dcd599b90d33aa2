"""Table rule variations."""

from dataclasses import dataclass

from config import GameConfig


@dataclass(frozen=True)
class GameRules:
    """
    Rules that shape a room's rounds.

    All values are fixed for the lifetime of a room.
    """

    # Deck is rebuilt and reshuffled when fewer cards than this remain
    low_water_mark: int = 10

    # Ability uses granted to each seat at the start of every round
    abilities_per_round: int = 6

    # Whether a bust inflicted on the opponent by an ability stops the opponent
    opponent_bust_forces_stop: bool = False

    # Random Glitch targets never hit the opponent's first dealt card
    glitch_spares_first_card: bool = False

    # Value given by To The Moon when no explicit value is requested
    to_the_moon_boost: int = 11

    # Bonus token range (inclusive)
    bonus_min: int = 10
    bonus_max: int = 100

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.low_water_mark < 4 or self.low_water_mark > 52:
            raise ValueError("low_water_mark must be between 4 and 52")
        if self.abilities_per_round < 0:
            raise ValueError("abilities_per_round cannot be negative")
        if not 1 <= self.to_the_moon_boost <= 11:
            raise ValueError("to_the_moon_boost must be between 1 and 11")
        if self.bonus_min < 0 or self.bonus_max < self.bonus_min:
            raise ValueError("bonus range must be non-negative and ordered")

    @classmethod
    def from_config(cls, game_config: GameConfig) -> "GameRules":
        """Build rules from the application configuration."""
        return cls(
            low_water_mark=game_config.low_water_mark,
            abilities_per_round=game_config.abilities_per_round,
            opponent_bust_forces_stop=game_config.opponent_bust_forces_stop,
            glitch_spares_first_card=game_config.glitch_spares_first_card,
            to_the_moon_boost=game_config.to_the_moon_boost,
            bonus_min=game_config.bonus_min,
            bonus_max=game_config.bonus_max,
        )

    @classmethod
    def classic(cls) -> "GameRules":
        """Plain draw/stand rounds with no abilities."""
        return cls(abilities_per_round=0)

    @classmethod
    def chaos(cls) -> "GameRules":
        """Abilities that bust the opponent also stop the opponent."""
        return cls(opponent_bust_forces_stop=True)
