#teamboard/api/realtime.py
"""
WebSocket entry point for team channels.

Clients connect to ``/ws?token=<jwt>`` and exchange JSON frames of the form
``{"event": ..., "data": ...}``. Membership is checked before a connection
may join a team channel; relayed task events reach every subscriber of the
channel, the sender included.
"""
import json
import logging
from typing import Any, Callable, ContextManager, Optional
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from teamboard.core import permissions
from teamboard.core.exceptions import AuthError, TeamNotFound
from teamboard.core.security import TokenIssuer
from teamboard.crud.team import get_team
from teamboard.dependencies import get_notifier, get_session_scope, get_token_issuer, resolve_user
from teamboard.services.notifier import ChannelRegistry, NEW_COMMENT, TASK_CREATED, TASK_UPDATED

logger = logging.getLogger("TeamBoard.Realtime")

router = APIRouter(tags=["Realtime"])

UNAUTHORIZED_CLOSE_CODE = 4401

# client event -> event fanned out to the channel
RELAYED_EVENTS = {
    "task_update": TASK_UPDATED,
    "new_task": TASK_CREATED,
    "task_comment": NEW_COMMENT,
}

def _team_id_from(data: Any) -> Optional[int]:
    if isinstance(data, dict):
        data = data.get("teamId")
    if isinstance(data, bool):
        return None
    try:
        return int(data)
    except (TypeError, ValueError):
        return None

async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})

SessionScope = Callable[[], ContextManager[Session]]

def _authenticate(open_session: SessionScope, token_issuer: TokenIssuer, token: Optional[str]) -> int:
    with open_session() as db:
        return resolve_user(db, token_issuer, token).id

def _membership_error(open_session: SessionScope, team_id: int, user_id: int) -> Optional[str]:
    """Reason the user may not join the team channel, or None when they may."""
    with open_session() as db:
        try:
            team = get_team(db, team_id)
        except TeamNotFound:
            return "Team not found"
        if not permissions.is_member(team, user_id):
            return "Access denied. You are not a member of this team."
    return None

async def _join(websocket: WebSocket, open_session: SessionScope, notifier: ChannelRegistry, user_id: int, data: Any) -> None:
    team_id = _team_id_from(data)
    if team_id is None:
        await _send_error(websocket, "teamId is required")
        return
    error = await run_in_threadpool(_membership_error, open_session, team_id, user_id)
    if error is not None:
        await _send_error(websocket, error)
        return
    notifier.join(websocket, team_id)
    await websocket.send_json({"event": "joined_team", "data": {"teamId": team_id}})

async def _leave(websocket: WebSocket, notifier: ChannelRegistry, data: Any) -> None:
    team_id = _team_id_from(data)
    if team_id is None:
        await _send_error(websocket, "teamId is required")
        return
    notifier.leave(websocket, team_id)
    await websocket.send_json({"event": "left_team", "data": {"teamId": team_id}})

async def _relay(websocket: WebSocket, notifier: ChannelRegistry, event: str, data: Any) -> None:
    team_id = _team_id_from(data)
    if team_id is None:
        await _send_error(websocket, "teamId is required")
        return
    if not notifier.is_subscribed(websocket, team_id):
        await _send_error(websocket, "Join the team channel before publishing to it")
        return
    await notifier.publish(team_id, RELAYED_EVENTS[event], data)

@router.websocket("/ws")
async def team_channel_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    open_session: SessionScope = Depends(get_session_scope),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    notifier: ChannelRegistry = Depends(get_notifier),
):
    # no session is held between messages; each lookup opens and closes its own
    try:
        user_id = await run_in_threadpool(_authenticate, open_session, token_issuer, token)
    except AuthError as e:
        logger.info(f"Rejected socket connection: {e.message}")
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        return

    await websocket.accept()
    logger.info(f"User {user_id} connected ({id(websocket)})")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(websocket, "Malformed message")
                continue
            if not isinstance(message, dict):
                await _send_error(websocket, "Malformed message")
                continue

            event = message.get("event")
            data = message.get("data")
            if event == "join_team":
                await _join(websocket, open_session, notifier, user_id, data)
            elif event == "leave_team":
                await _leave(websocket, notifier, data)
            elif event in RELAYED_EVENTS:
                await _relay(websocket, notifier, event, data)
            else:
                await _send_error(websocket, f"Unknown event: {event}")
    except WebSocketDisconnect:
        logger.info(f"User {user_id} disconnected ({id(websocket)})")
    finally:
        notifier.disconnect(websocket)
