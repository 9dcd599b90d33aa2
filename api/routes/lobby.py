"""Lobby API endpoints: player tokens, room lookup and wallet balance."""

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException

from api.schemas import BalanceResponse, RoomSummaryResponse, SessionResponse
from api.session import extract_player_id, issue_player_token
from api.websocket import get_room_manager
from core.errors import NotFound
from core.wallet import get_wallet_store

router = APIRouter()


def _require_player(token: str | None) -> str:
    """Resolve a signed token to a player ID or fail with 401."""
    player_id = extract_player_id(token) if token else None
    if player_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return player_id


@router.post("/session", response_model=SessionResponse)
async def new_session() -> SessionResponse:
    """Issue a player token for the WebSocket gateway."""
    player_id, token = issue_player_token()
    wallet = await get_wallet_store()
    return SessionResponse(token=token, balance=await wallet.get_balance(player_id))


@router.get("/rooms/{room_code}", response_model=RoomSummaryResponse)
async def room_summary(room_code: str) -> RoomSummaryResponse:
    """Look up a room by its shareable code."""
    rooms = await get_room_manager()
    try:
        room = rooms.get_room(room_code)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return RoomSummaryResponse.model_validate(room.summary())


@router.get("/wallet", response_model=BalanceResponse)
async def wallet_balance(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> BalanceResponse:
    """Get the calling player's token balance."""
    player_id = _require_player(session_id)
    wallet = await get_wallet_store()
    return BalanceResponse(balance=await wallet.get_balance(player_id))
