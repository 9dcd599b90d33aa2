"""Room registry and session lifecycle.

The manager owns every room. Intents addressed to a room run under that
room's lock, so two intents for the same room are never applied at the same
time while different rooms never wait on each other. Outbound traffic is
emitted as addressed ``GameEvent`` objects for the gateway to deliver.
"""

import asyncio
import logging
import string
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from random import Random
from typing import Any, AsyncIterator, Callable

from config import config
from core.errors import GameError, InvalidTarget, NotFound, NotReady, NotSeated, RoomFull
from core.game.abilities import Ability, AbilityTarget
from core.game.engine import WhitejackGame
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.rules import GameRules
from core.game.state import RoundPhase, Seat
from core.wallet import WalletStore

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

LEFT = "left"
DISCONNECTED = "disconnected"

_LEAVE_MESSAGES = {
    LEFT: "Other player left the room",
    DISCONNECTED: "Other player disconnected",
}


@dataclass
class Room:
    """An isolated two-seat session keyed by a shareable code."""

    code: str
    game: WhitejackGame
    players: dict[Seat, str | None] = field(
        default_factory=lambda: {Seat.A: None, Seat.B: None}
    )
    bet: int | None = None
    # Tokens each seat has at risk in the unresolved round
    stakes: dict[Seat, int] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def seat_of(self, player_id: str) -> Seat | None:
        """Return the seat a player occupies, if any."""
        for seat, occupant in self.players.items():
            if occupant is not None and occupant == player_id:
                return seat
        return None

    @property
    def is_full(self) -> bool:
        """Check if both seats are taken."""
        return all(occupant is not None for occupant in self.players.values())

    def summary(self) -> dict[str, Any]:
        """Public description of the room for lobby lookups."""
        return {
            "roomCode": self.code,
            "seatsFilled": sum(1 for p in self.players.values() if p is not None),
            "roundNumber": self.game.round_number,
            "phase": self.game.phase.name,
            "bet": self.bet,
        }


class RoomManager:
    """Create, join, drive and tear down rooms."""

    def __init__(
        self,
        wallet: WalletStore,
        rules: GameRules | None = None,
        rng: Random | None = None,
        code_length: int | None = None,
        max_bet: int | None = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            wallet: Wallet collaborator for bets and bonus tokens
            rules: Rules for every room (defaults from configuration)
            rng: Random source for room codes and per-room seeds
            code_length: Length of generated room codes
            max_bet: Largest bet a room may be created with
        """
        self.wallet = wallet
        self.rules = rules or GameRules.from_config(config.game)
        self._rng = rng or Random()
        self._code_length = code_length or config.game.room_code_length
        self._max_bet = max_bet or config.game.max_bet
        self.rooms: dict[str, Room] = {}
        self.events = EventEmitter()

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to outbound room events."""
        self.events.subscribe(handler, event_type)

    def get_room(self, code: str) -> Room:
        """Look up a room by code."""
        room = self.rooms.get(code.strip().upper()) if code else None
        if room is None:
            raise NotFound()
        return room

    def rooms_of(self, player_id: str) -> list[str]:
        """Codes of every room a player is seated in."""
        return [code for code, room in self.rooms.items() if room.seat_of(player_id)]

    async def create_room(self, player_id: str, bet: int | None = None) -> Room:
        """Open a room with the caller in seat A."""
        if bet is not None and not 1 <= bet <= self._max_bet:
            raise InvalidTarget(f"Bet must be between 1 and {self._max_bet}")
        if bet:
            await self.wallet.debit(player_id, bet)

        code = self._generate_code()
        game = WhitejackGame(rules=self.rules, rng=Random(self._rng.getrandbits(64)))
        room = Room(code=code, game=game, bet=bet)
        room.players[Seat.A] = player_id
        if bet:
            room.stakes[Seat.A] = bet
        self.rooms[code] = room

        logger.info("Room %s created by %s (bet=%s)", code, player_id, bet)
        self._emit(
            EventType.ROOM_CREATED,
            player_id,
            roomCode=code,
            seat=Seat.A.value,
            state=game.snapshot(Seat.A),
        )
        return room

    async def join_room(self, player_id: str, code: str) -> Room:
        """Seat the caller in seat B and deal the first round."""
        async with self._locked(code) as room:
            if room.seat_of(player_id) is not None:
                raise RoomFull("You are already seated in this room")
            if room.is_full:
                raise RoomFull()

            if room.bet:
                await self.wallet.debit(player_id, room.bet)
                room.stakes[Seat.B] = room.bet
            room.players[Seat.B] = player_id

            room.game.start_round()
            logger.info("Player %s joined room %s. Game started!", player_id, room.code)
            self._broadcast(room, EventType.ROUND_STARTED, with_seat=True)
            return room

    async def draw(self, player_id: str, code: str, seat: Seat | str | None = None) -> None:
        """Draw a card for the caller's seat."""
        async with self._locked(code) as room:
            seat = self._resolve_seat(room, player_id, seat)
            card = room.game.draw(seat)
            logger.debug(
                "%s hit in room %s: %s, cards remaining %d",
                seat, room.code, card, len(room.game.deck),
            )
            await self._after_action(room)

    async def stand(self, player_id: str, code: str, seat: Seat | str | None = None) -> None:
        """Stop the caller's seat for this round."""
        async with self._locked(code) as room:
            seat = self._resolve_seat(room, player_id, seat)
            room.game.stand(seat)
            logger.debug("%s stood in room %s", seat, room.code)
            await self._after_action(room)

    async def use_ability(
        self,
        player_id: str,
        code: str,
        ability: Ability | str,
        target: AbilityTarget | None = None,
        seat: Seat | str | None = None,
    ) -> None:
        """Resolve an ability for the caller's seat."""
        async with self._locked(code) as room:
            seat = self._resolve_seat(room, player_id, seat)
            result = room.game.use_ability(seat, ability, target)
            logger.info("%s used %s in room %s", seat, result.ability.value, room.code)

            if result.bonus:
                await self.wallet.credit(player_id, result.bonus)
            await self._settle_if_over(room)

            for other_seat, occupant in room.players.items():
                if occupant is None:
                    continue
                if other_seat == seat:
                    self._emit(
                        EventType.ABILITY_RESULT,
                        occupant,
                        ability=result.ability.value,
                        revealPayload=result.reveal,
                        detail=result.detail,
                        bonus=result.bonus,
                        state=room.game.snapshot(other_seat),
                    )
                else:
                    self._emit(
                        EventType.STATE_CHANGED,
                        occupant,
                        state=room.game.snapshot(other_seat),
                    )
            room.game.acknowledge_reshuffle()

    async def request_rematch(
        self,
        player_id: str,
        code: str,
        seat: Seat | str | None = None,
    ) -> bool:
        """
        Record the caller's rematch intent.

        Returns:
            True if both seats agreed and a new round was dealt
        """
        async with self._locked(code) as room:
            seat = self._resolve_seat(room, player_id, seat)
            game = room.game
            if not room.is_full:
                raise NotReady()
            if game.phase != RoundPhase.ROUND_OVER:
                raise NotReady("Game is not over yet")

            if room.bet and game.rematch_would_start(seat):
                await self._collect_stakes(room)

            started = game.request_rematch(seat)
            if started:
                logger.info(
                    "New round started in room %s. Round #%d. Score: %d-%d",
                    room.code,
                    game.round_number,
                    game.match_score[Seat.A],
                    game.match_score[Seat.B],
                )
                self._broadcast(room, EventType.ROUND_STARTED, with_seat=True)
            else:
                self._broadcast(room, EventType.REMATCH_PENDING)
            return started

    async def leave_room(self, player_id: str, code: str) -> None:
        """Destroy the room on the caller's request."""
        async with self._locked(code) as room:
            self._resolve_seat(room, player_id)
            await self._teardown(room, LEFT, player_id)

    async def disconnect(self, player_id: str) -> None:
        """Destroy every room the disconnected player was seated in."""
        for code in self.rooms_of(player_id):
            room = self.rooms.get(code)
            if room is None:
                continue
            async with room.lock:
                if self.rooms.get(code) is not room:
                    continue
                await self._teardown(room, DISCONNECTED, player_id)

    def reject(self, player_id: str, error: GameError) -> None:
        """Report a rejected intent to the caller only."""
        logger.debug("Rejected intent from %s: %s (%s)", player_id, error.message, error.code)
        self._emit(
            EventType.ACTION_REJECTED,
            player_id,
            reason=error.code,
            message=error.message,
        )

    @asynccontextmanager
    async def _locked(self, code: str) -> AsyncIterator[Room]:
        """Hold a room's lock, failing if the room was torn down meanwhile."""
        room = self.get_room(code)
        async with room.lock:
            if self.rooms.get(room.code) is not room:
                raise NotFound()
            yield room

    def _resolve_seat(
        self,
        room: Room,
        player_id: str,
        claimed: Seat | str | None = None,
    ) -> Seat:
        """Map the caller to its seat, checking any seat it claimed."""
        seat = room.seat_of(player_id)
        if seat is None:
            raise NotSeated()
        if claimed is not None and claimed != seat:
            raise NotSeated(f"Seat {claimed} belongs to your opponent")
        return seat

    def _generate_code(self) -> str:
        """Generate a room code that is not in use."""
        while True:
            code = "".join(self._rng.choices(ROOM_CODE_ALPHABET, k=self._code_length))
            if code not in self.rooms:
                return code

    async def _after_action(self, room: Room) -> None:
        """Settle a finished round and broadcast the new state."""
        await self._settle_if_over(room)
        self._broadcast(room, EventType.STATE_CHANGED)

    async def _settle_if_over(self, room: Room) -> None:
        """Pay out the stakes of a round that just ended."""
        if room.game.phase != RoundPhase.ROUND_OVER or not room.stakes:
            return

        winner = room.game.winner_seat
        if winner is not None:
            pot = sum(room.stakes.values())
            await self.wallet.credit(room.players[winner], pot)
        else:
            for seat, amount in room.stakes.items():
                await self.wallet.credit(room.players[seat], amount)
        room.stakes.clear()
        logger.info("Room %s round %d settled, winner=%s",
                    room.code, room.game.round_number, room.game.state.winner)

    async def _collect_stakes(self, room: Room) -> None:
        """Debit the bet from both seats before a rematch is dealt."""
        collected: list[Seat] = []
        try:
            for seat in Seat:
                await self.wallet.debit(room.players[seat], room.bet)
                collected.append(seat)
        except GameError:
            for seat in collected:
                await self.wallet.credit(room.players[seat], room.bet)
            raise
        for seat in collected:
            room.stakes[seat] = room.bet

    async def _teardown(self, room: Room, reason: str, departing: str) -> None:
        """Remove a room, refund open stakes and notify the remaining seat."""
        del self.rooms[room.code]

        for seat, amount in room.stakes.items():
            await self.wallet.credit(room.players[seat], amount)
        room.stakes.clear()

        for occupant in room.players.values():
            if occupant is not None and occupant != departing:
                self._emit(
                    EventType.OPPONENT_LEFT,
                    occupant,
                    roomCode=room.code,
                    reason=reason,
                    message=_LEAVE_MESSAGES[reason],
                )
        logger.info("Room %s deleted - player %s", room.code, reason)

    def _broadcast(self, room: Room, event_type: EventType, with_seat: bool = False) -> None:
        """Send every seated player its own view of the room state."""
        for seat, occupant in room.players.items():
            if occupant is None:
                continue
            data: dict[str, Any] = {"state": room.game.snapshot(seat)}
            if with_seat:
                data.update(roomCode=room.code, seat=seat.value)
            self._emit(event_type, occupant, **data)
        room.game.acknowledge_reshuffle()

    def _emit(self, event_type: EventType, recipient: str, **data: Any) -> None:
        self.events.emit_new(event_type, recipient=recipient, **data)
