"""Two-seat round engine with state machine."""

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Any, Callable

from transitions import Machine

from core.cards import Card, Deck
from core.errors import AlreadyStopped, NotReady, OutOfTurn
from core.hand import Hand, compare_hands
from core.game.abilities import Ability, AbilityResult, AbilityTarget, resolve_ability
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.rules import GameRules
from core.game.state import RoundPhase, Seat

logger = logging.getLogger(__name__)

DRAW = "draw"


@dataclass
class SeatState:
    """One seat's state during a round."""

    hand: Hand = field(default_factory=Hand)
    stopped: bool = False
    rematch_intent: bool = False
    abilities_remaining: int = 0
    # Caller-only ability reveals, keyed by snapshot field name
    reveals: dict[str, Any] = field(default_factory=dict)

    @property
    def score(self) -> int:
        """Return the current hand score."""
        return self.hand.value

    @property
    def is_busted(self) -> bool:
        """Check if the seat's hand has busted."""
        return self.hand.is_busted

    def to_dict(self) -> dict[str, Any]:
        """Serialize the public part of the seat."""
        return {
            "hand": self.hand.to_list(),
            "stopped": self.stopped,
            "score": self.score,
            "busted": self.is_busted,
            "rematchIntent": self.rematch_intent,
            "abilitiesRemaining": self.abilities_remaining,
        }


@dataclass
class GameState:
    """
    State of the current round.

    A new instance replaces the previous one at every round start.
    """

    seats: dict[Seat, SeatState]
    current_turn: Seat | None = None
    started: bool = False
    over: bool = False
    winner: str | None = None
    deck_reshuffled: bool = False
    cards_remaining: int = 0

    @classmethod
    def empty(cls, cards_remaining: int) -> "GameState":
        """State of a room that has not dealt its first round."""
        return cls(
            seats={seat: SeatState() for seat in Seat},
            cards_remaining=cards_remaining,
        )

    @property
    def both_stopped(self) -> bool:
        """Check if neither seat can act any more this round."""
        return all(seat.stopped for seat in self.seats.values())


class WhitejackGame:
    """
    Round and turn engine for one room, driven by a state machine.

    The deck, round counter and match score persist across rounds; the
    per-round ``GameState`` is replaced wholesale whenever a round is dealt.
    Every rejected action raises a ``GameError`` before touching any state.
    """

    # State machine states
    STATES = [p.name.lower() for p in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal", "source": ["not_started", "round_over"], "dest": "in_progress"},
        {"trigger": "finish", "source": "in_progress", "dest": "round_over"},
    ]

    def __init__(
        self,
        rules: GameRules | None = None,
        rng: Random | None = None,
        deck: Deck | None = None,
    ) -> None:
        """
        Initialize a new room engine.

        Args:
            rules: Room rules (uses defaults if not provided)
            rng: Random number generator for shuffles and ability effects
            deck: Pre-arranged deck; a freshly shuffled deck is used when omitted
        """
        self.rules = rules or GameRules()
        self.rng = rng or Random()
        if deck is None:
            deck = Deck(rng=self.rng)
            deck.shuffle()
        self.deck = deck

        self.round_number = 0
        self.match_score: dict[Seat, int] = {seat: 0 for seat in Seat}
        self.state = GameState.empty(cards_remaining=len(self.deck))
        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="not_started",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current round phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def start_round(self) -> GameState:
        """
        Deal a new round.

        Both seats receive two cards, flags and ability allotments are reset,
        and the first mover alternates with the round number.
        """
        if self.phase == RoundPhase.IN_PROGRESS:
            raise NotReady("Round already in progress")

        reshuffled = self._reshuffle_if_low()
        self.round_number += 1

        seats = {
            seat: SeatState(abilities_remaining=self.rules.abilities_per_round)
            for seat in Seat
        }
        for seat in Seat:
            seats[seat].hand.add_card(self.deck.draw())
            seats[seat].hand.add_card(self.deck.draw())

        first = Seat.A if self.round_number % 2 == 1 else Seat.B
        self.state = GameState(
            seats=seats,
            current_turn=first,
            started=True,
            deck_reshuffled=reshuffled,
            cards_remaining=len(self.deck),
        )
        self.deal()

        self.events.emit_new(
            EventType.ROUND_STARTED,
            round_number=self.round_number,
            first_turn=first.value,
        )
        return self.state

    def require_turn(self, seat: Seat) -> SeatState:
        """
        Check that a seat may act now.

        Raises:
            NotReady: the round is not in progress
            AlreadyStopped: the seat has stood or busted
            OutOfTurn: it is the other seat's turn
        """
        if self.phase != RoundPhase.IN_PROGRESS:
            raise NotReady("Round is not in progress")

        seat_state = self.state.seats[seat]
        if seat_state.stopped:
            raise AlreadyStopped()
        if self.state.current_turn != seat:
            raise OutOfTurn()
        return seat_state

    def draw(self, seat: Seat) -> Card:
        """Seat draws one card."""
        seat_state = self.require_turn(seat)

        card = self._draw_card()
        seat_state.hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DRAWN,
            seat=seat.value,
            card=str(card),
            score=seat_state.score,
        )

        self.settle_after(seat)
        return card

    def stand(self, seat: Seat) -> None:
        """Seat stops without drawing."""
        seat_state = self.require_turn(seat)

        seat_state.stopped = True
        self.events.emit_new(EventType.SEAT_STOOD, seat=seat.value, score=seat_state.score)

        self.settle_after(seat)

    def use_ability(
        self,
        seat: Seat,
        ability: Ability | str,
        target: AbilityTarget | None = None,
    ) -> AbilityResult:
        """Resolve an ability for a seat."""
        return resolve_ability(self, seat, ability, target or AbilityTarget())

    def request_rematch(self, seat: Seat) -> bool:
        """
        Record a seat's rematch intent.

        Returns:
            True if both seats are now ready and a new round was dealt
        """
        if self.phase != RoundPhase.ROUND_OVER:
            raise NotReady("Game is not over yet")

        self.state.seats[seat].rematch_intent = True
        self.events.emit_new(EventType.REMATCH_REQUESTED, seat=seat.value)

        if all(s.rematch_intent for s in self.state.seats.values()):
            self.start_round()
            return True
        return False

    def rematch_would_start(self, seat: Seat) -> bool:
        """Check if a rematch intent from this seat would deal a new round."""
        return (
            self.phase == RoundPhase.ROUND_OVER
            and self.state.seats[seat.other].rematch_intent
        )

    def settle_after(self, seat: Seat, affects_opponent: bool = False) -> None:
        """
        Apply bust, round-end and turn consequences of an accepted action.

        Args:
            seat: The seat that acted
            affects_opponent: The action changed the opponent's hand
        """
        acting = self.state.seats[seat]
        if acting.is_busted and not acting.stopped:
            acting.stopped = True
            self.events.emit_new(EventType.SEAT_BUSTED, seat=seat.value, score=acting.score)

        if affects_opponent and self.rules.opponent_bust_forces_stop:
            opponent = self.state.seats[seat.other]
            if opponent.is_busted and not opponent.stopped:
                opponent.stopped = True
                self.events.emit_new(
                    EventType.SEAT_BUSTED,
                    seat=seat.other.value,
                    score=opponent.score,
                )

        self.state.cards_remaining = len(self.deck)

        if self.state.both_stopped:
            self._resolve_round()
        else:
            self._pass_turn(seat)

    def next_card(self) -> Card | None:
        """Return the card the next draw will produce, reshuffling first if due."""
        if self._reshuffle_if_low():
            self.state.deck_reshuffled = True
            self.state.cards_remaining = len(self.deck)
        return self.deck.peek()

    def acknowledge_reshuffle(self) -> None:
        """Clear the reshuffle flag once it has been broadcast."""
        self.state.deck_reshuffled = False

    def snapshot(self, viewer: Seat | None = None) -> dict[str, Any]:
        """
        Serialize the round state for one seat.

        While a round is running the viewer's opponent shows its first card
        face down and no score. Ability reveals are included only for the
        seat that earned them. Without a viewer the full state is returned.
        """
        state = self.state
        data: dict[str, Any] = {
            "players": {seat.value: s.to_dict() for seat, s in state.seats.items()},
            "whoseTurn": state.current_turn.value if state.current_turn else None,
            "started": state.started,
            "over": state.over,
            "winner": state.winner,
            "deckReshuffled": state.deck_reshuffled,
            "cardsRemaining": state.cards_remaining,
            "matchScore": {seat.value: n for seat, n in self.match_score.items()},
            "roundNumber": self.round_number,
            "nextCardPeek": None,
            "opponentCardReveal": None,
            "deckHistogram": None,
        }
        if viewer is not None:
            if state.started and not state.over:
                opponent = data["players"][viewer.other.value]
                if opponent["hand"]:
                    opponent["hand"][0] = {"hidden": True}
                opponent["score"] = None
            data.update(state.seats[viewer].reveals)
        return data

    def _draw_card(self) -> Card:
        """Draw from the deck, reshuffling first if it has run low."""
        if self._reshuffle_if_low():
            self.state.deck_reshuffled = True
        return self.deck.draw()

    def _reshuffle_if_low(self) -> bool:
        """Rebuild and reshuffle a deck that fell below the low-water mark."""
        if not self.deck.is_below(self.rules.low_water_mark):
            return False
        self.deck.rebuild()
        self.events.emit_new(EventType.DECK_RESHUFFLED, cards_remaining=len(self.deck))
        return True

    def _pass_turn(self, seat: Seat) -> None:
        """Hand the turn to the other seat unless it has already stopped."""
        other = seat.other
        if self.state.seats[other].stopped:
            self.state.current_turn = seat
        else:
            self.state.current_turn = other

    def _resolve_round(self) -> None:
        """Decide the winner once both seats have stopped."""
        outcome = compare_hands(
            self.state.seats[Seat.A].hand,
            self.state.seats[Seat.B].hand,
        )
        winner = {1: Seat.A, -1: Seat.B}.get(outcome)

        self.state.over = True
        self.state.winner = winner.value if winner else DRAW
        if winner is not None:
            self.match_score[winner] += 1

        self.finish()
        self.events.emit_new(
            EventType.ROUND_ENDED,
            winner=self.state.winner,
            scores={seat.value: s.score for seat, s in self.state.seats.items()},
        )
        logger.debug(
            "Round %d ended, winner=%s", self.round_number, self.state.winner
        )

    @property
    def winner_seat(self) -> Seat | None:
        """Return the winning seat of a finished round, or None."""
        if self.state.winner in (Seat.A.value, Seat.B.value):
            return Seat(self.state.winner)
        return None
