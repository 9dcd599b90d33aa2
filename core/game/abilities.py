"""Special-ability resolver.

Each ability is a row in ``ABILITY_TABLE``: a validator that rejects bad
targets, an effect that mutates the round, the snapshot field its reveal is
stored under, and how the turn is settled afterwards. Validators run before
any mutation, and a use is only consumed once the effect has been applied.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from core.cards import MAX_CARD_VALUE, MIN_CARD_VALUE
from core.errors import AbilityExhausted, InvalidTarget
from core.game.events import EventType
from core.game.state import Seat

if TYPE_CHECKING:
    from core.game.engine import WhitejackGame


class Ability(str, Enum):
    """Ability identifiers as sent by clients."""

    SWAP = "swap"
    PEEK = "peek"
    ORACLE = "oracle"
    STATISTIC = "statistic"
    GLITCH = "glitch"
    TO_THE_MOON = "tothemoon"
    BONUS = "bonus"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AbilityTarget:
    """Optional targeting parameters of an ability intent."""

    my_card_index: int | None = None
    opponent_card_index: int | None = None
    target_card_index: int | None = None
    new_value: int | None = None


@dataclass
class AbilityResult:
    """Outcome of a resolved ability."""

    ability: Ability
    reveal: Any = None
    bonus: int = 0
    detail: dict[str, Any] = field(default_factory=dict)


Validator = Callable[["WhitejackGame", Seat, AbilityTarget], None]
Effect = Callable[["WhitejackGame", Seat, AbilityTarget], AbilityResult]


@dataclass(frozen=True)
class AbilitySpec:
    """Table entry describing one ability."""

    validate: Validator
    apply: Effect
    reveal_key: str | None = None
    ends_turn: bool = False
    affects_opponent: bool = False


def _no_target(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> None:
    """Abilities without parameters accept any target."""


def _validate_swap(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> None:
    mine = game.state.seats[seat].hand
    theirs = game.state.seats[seat.other].hand
    if not mine.has_index(target.my_card_index):
        raise InvalidTarget("Invalid card selection: your card index")
    if not theirs.has_index(target.opponent_card_index):
        raise InvalidTarget("Invalid card selection: opponent card index")


def _swap(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    mine = game.state.seats[seat].hand
    theirs = game.state.seats[seat.other].hand
    my_card = mine.cards[target.my_card_index]
    their_card = theirs.replace_card(target.opponent_card_index, my_card)
    mine.replace_card(target.my_card_index, their_card)
    return AbilityResult(
        Ability.SWAP,
        detail={
            "myCardIndex": target.my_card_index,
            "opponentCardIndex": target.opponent_card_index,
        },
    )


def _peek(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    card = game.next_card()
    return AbilityResult(Ability.PEEK, reveal=card.to_dict() if card else None)


def _validate_oracle(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> None:
    if not game.state.seats[seat.other].hand.cards:
        raise InvalidTarget("Opponent has no cards")


def _oracle(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    first = game.state.seats[seat.other].hand.cards[0]
    return AbilityResult(Ability.ORACLE, reveal=first.to_dict())


def _statistic(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    return AbilityResult(
        Ability.STATISTIC,
        reveal={
            "statistics": game.deck.histogram(),
            "totalCards": len(game.deck),
        },
    )


def _glitch_candidates(game: "WhitejackGame", seat: Seat) -> list[int]:
    """Indices of opponent cards Glitch may hit."""
    indices = list(range(len(game.state.seats[seat.other].hand)))
    if game.rules.glitch_spares_first_card:
        indices = indices[1:]
    return indices


def _validate_glitch(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> None:
    candidates = _glitch_candidates(game, seat)
    if not candidates:
        raise InvalidTarget("No opponent card can be glitched")
    if target.target_card_index is not None and target.target_card_index not in candidates:
        raise InvalidTarget("Invalid card selection: glitch target")


def _glitch(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    theirs = game.state.seats[seat.other].hand
    index = target.target_card_index
    if index is None:
        index = game.rng.choice(_glitch_candidates(game, seat))

    new_value = game.rng.randint(MIN_CARD_VALUE, MAX_CARD_VALUE)
    old_card = theirs.replace_card(index, theirs.cards[index].with_value(new_value))
    return AbilityResult(
        Ability.GLITCH,
        detail={
            "targetCardIndex": index,
            "oldValue": old_card.value,
            "newValue": new_value,
        },
    )


def _validate_to_the_moon(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> None:
    if not game.state.seats[seat].hand.has_index(target.my_card_index):
        raise InvalidTarget("Invalid card selection: your card index")
    if target.new_value is not None and not (
        MIN_CARD_VALUE <= target.new_value <= MAX_CARD_VALUE
    ):
        raise InvalidTarget("Invalid card or value selection")


def _to_the_moon(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    mine = game.state.seats[seat].hand
    new_value = target.new_value
    if new_value is None:
        new_value = game.rules.to_the_moon_boost

    index = target.my_card_index
    old_card = mine.replace_card(index, mine.cards[index].with_value(new_value))
    return AbilityResult(
        Ability.TO_THE_MOON,
        detail={
            "myCardIndex": index,
            "oldValue": old_card.value,
            "newValue": new_value,
        },
    )


def _bonus(game: "WhitejackGame", seat: Seat, target: AbilityTarget) -> AbilityResult:
    amount = game.rng.randint(game.rules.bonus_min, game.rules.bonus_max)
    return AbilityResult(Ability.BONUS, bonus=amount, detail={"tokens": amount})


ABILITY_TABLE: dict[Ability, AbilitySpec] = {
    Ability.SWAP: AbilitySpec(
        _validate_swap, _swap, ends_turn=True, affects_opponent=True
    ),
    Ability.PEEK: AbilitySpec(_no_target, _peek, reveal_key="nextCardPeek"),
    Ability.ORACLE: AbilitySpec(
        _validate_oracle, _oracle, reveal_key="opponentCardReveal"
    ),
    Ability.STATISTIC: AbilitySpec(_no_target, _statistic, reveal_key="deckHistogram"),
    Ability.GLITCH: AbilitySpec(
        _validate_glitch, _glitch, ends_turn=True, affects_opponent=True
    ),
    Ability.TO_THE_MOON: AbilitySpec(_validate_to_the_moon, _to_the_moon, ends_turn=True),
    Ability.BONUS: AbilitySpec(_no_target, _bonus),
}


def resolve_ability(
    game: "WhitejackGame",
    seat: Seat,
    ability: Ability | str,
    target: AbilityTarget,
) -> AbilityResult:
    """
    Validate and apply an ability for a seat.

    Raises:
        InvalidTarget: unknown ability or bad target parameters
        AbilityExhausted: the seat has no uses left this round
        NotReady, AlreadyStopped, OutOfTurn: the seat may not act now
    """
    try:
        ability = Ability(ability)
    except ValueError:
        raise InvalidTarget(f"Unknown ability: {ability}") from None

    entry = ABILITY_TABLE[ability]
    seat_state = game.require_turn(seat)
    if seat_state.abilities_remaining <= 0:
        raise AbilityExhausted()

    entry.validate(game, seat, target)
    result = entry.apply(game, seat, target)

    seat_state.abilities_remaining -= 1
    if entry.reveal_key is not None:
        seat_state.reveals[entry.reveal_key] = result.reveal

    game.events.emit_new(
        EventType.ABILITY_USED,
        seat=seat.value,
        ability=ability.value,
        remaining=seat_state.abilities_remaining,
        **result.detail,
    )

    if entry.ends_turn:
        game.settle_after(seat, affects_opponent=entry.affects_opponent)
    else:
        game.state.cards_remaining = len(game.deck)
    return result
