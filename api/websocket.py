"""WebSocket gateway between player connections and the room manager."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from api.schemas import (
    CreateRoomIntent,
    DrawIntent,
    JoinRoomIntent,
    LeaveRoomIntent,
    RequestRematchIntent,
    StandIntent,
    UseAbilityIntent,
    intent_adapter,
)
from api.session import extract_player_id
from core.errors import GameError
from core.game.events import EventType, GameEvent
from core.rooms import RoomManager
from core.wallet import get_wallet_store

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_INTENT = "invalid_intent"


class ConnectionManager:
    """Manage WebSocket connections and their outbound queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue] = {}

    async def connect(self, websocket: WebSocket, player_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[player_id] = websocket
        self._event_queues[player_id] = asyncio.Queue()

    def disconnect(self, player_id: str) -> None:
        """Remove a connection."""
        self._connections.pop(player_id, None)
        self._event_queues.pop(player_id, None)

    def is_connected(self, player_id: str) -> bool:
        """Check if a player already has an open connection."""
        return player_id in self._connections

    def queue_event(self, event: GameEvent) -> None:
        """Queue an addressed event for its recipient."""
        queue = self._event_queues.get(event.recipient) if event.recipient else None
        if queue is not None:
            queue.put_nowait(event.to_message())

    def queue_rejection(self, player_id: str, message: str) -> None:
        """Queue a rejection for a payload that is not a valid intent."""
        self.queue_event(
            GameEvent(
                EventType.ACTION_REJECTED,
                data={"reason": INVALID_INTENT, "message": message},
                recipient=player_id,
            )
        )

    async def next_message(self, player_id: str) -> dict[str, Any]:
        """Wait for the next outbound message of a player."""
        return await self._event_queues[player_id].get()

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
connections = ConnectionManager()

# Global room manager, created on first use
_room_manager: RoomManager | None = None


async def get_room_manager() -> RoomManager:
    """Get or create the room manager."""
    global _room_manager
    if _room_manager is None:
        wallet = await get_wallet_store()
        if _room_manager is None:
            _room_manager = RoomManager(wallet)
            _room_manager.subscribe(connections.queue_event)
    return _room_manager


async def dispatch_intent(rooms: RoomManager, player_id: str, intent: Any) -> None:
    """Apply a validated intent on behalf of a player."""
    if isinstance(intent, CreateRoomIntent):
        await rooms.create_room(player_id, intent.bet)
    elif isinstance(intent, JoinRoomIntent):
        await rooms.join_room(player_id, intent.room_code)
    elif isinstance(intent, DrawIntent):
        await rooms.draw(player_id, intent.room_code, intent.seat)
    elif isinstance(intent, StandIntent):
        await rooms.stand(player_id, intent.room_code, intent.seat)
    elif isinstance(intent, UseAbilityIntent):
        target = intent.target_data.to_target() if intent.target_data else None
        await rooms.use_ability(
            player_id,
            intent.room_code,
            intent.ability_id,
            target,
            seat=intent.seat,
        )
    elif isinstance(intent, RequestRematchIntent):
        await rooms.request_rematch(player_id, intent.room_code, intent.seat)
    elif isinstance(intent, LeaveRoomIntent):
        await rooms.leave_room(player_id, intent.room_code)
    else:
        raise TypeError(f"Unhandled intent: {type(intent).__name__}")


async def stop_pump(pump: asyncio.Task, player_id: str) -> None:
    """Cancel a connection's send task and wait for it to finish."""
    pump.cancel()
    try:
        await pump
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        # The socket may already be gone when the last send fails
        logger.debug("Send task for %s ended with %r", player_id, exc)


@router.websocket("/play/{token}")
async def play_websocket(websocket: WebSocket, token: str) -> None:
    """
    WebSocket endpoint for a player.

    Messages from client (camelCase fields):
    - {"type": "CreateRoom", "bet": 50}
    - {"type": "JoinRoom", "roomCode": "AB12CD"}
    - {"type": "Draw" | "Stand" | "RequestRematch", "roomCode": "...", "seat": "A"}
    - {"type": "UseAbility", "roomCode": "...", "abilityId": "swap",
       "targetData": {"myCardIndex": 0, "opponentCardIndex": 1}}
    - {"type": "LeaveRoom", "roomCode": "..."}

    Messages to client:
    - {"type": "RoomCreated" | "RoundStarted", "roomCode": "...", "seat": "A", "state": {...}}
    - {"type": "StateChanged" | "RematchPending", "state": {...}}
    - {"type": "AbilityResult", "ability": "...", "revealPayload": ..., "state": {...}}
    - {"type": "OpponentLeft", "reason": "left" | "disconnected", "message": "..."}
    - {"type": "ActionRejected", "reason": "...", "message": "..."}
    """
    player_id = extract_player_id(token)
    if player_id is None or connections.is_connected(player_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    rooms = await get_room_manager()
    await connections.connect(websocket, player_id)
    logger.info("Player %s connected", player_id)

    async def pump_events() -> None:
        """Send queued events to the client in order."""
        while True:
            message = await connections.next_message(player_id)
            await websocket.send_json(message)

    pump = asyncio.create_task(pump_events())

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                intent = intent_adapter.validate_python(json.loads(raw))
            except (ValueError, ValidationError) as exc:
                connections.queue_rejection(player_id, str(exc).splitlines()[0])
                continue

            try:
                await dispatch_intent(rooms, player_id, intent)
            except GameError as exc:
                rooms.reject(player_id, exc)

    except WebSocketDisconnect:
        logger.info("Player %s disconnected", player_id)
    finally:
        await stop_pump(pump, player_id)
        connections.disconnect(player_id)
        await rooms.disconnect(player_id)
