import json
import logging
from fastapi import WebSocket, WebSocketDisconnect, Query, status
from pydantic import ValidationError as PydanticValidationError

from frequency.core.database import AsyncSessionLocal
from frequency.core.realtime import connection_manager
from frequency.api.deps import get_user_from_token
from frequency.schemas.realtime import IncomingRealtimeMessage, RealtimeMessageType

logger = logging.getLogger(__name__)


async def realtime_endpoint(
    websocket: WebSocket,
    token: str = Query(..., description="JWT access token")
):
    """WebSocket change feed keyed by table name"""
    async with AsyncSessionLocal() as db:
        user = await get_user_from_token(token, db)

    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = user.id
    await connection_manager.connect(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = IncomingRealtimeMessage.model_validate(json.loads(data))
            except json.JSONDecodeError:
                await connection_manager.send_error(user_id, "Invalid JSON format", "INVALID_JSON")
                continue
            except PydanticValidationError as e:
                await connection_manager.send_error(user_id, f"Invalid message format: {e}", "INVALID_FORMAT")
                continue

            await handle_realtime_message(message, user_id)

    except WebSocketDisconnect:
        logger.debug(f"Realtime connection of user {user_id} closed by client")
    finally:
        # A newer connection of the same user may have replaced this one
        if connection_manager.active_connections.get(user_id) is websocket:
            connection_manager.disconnect(user_id)


async def handle_realtime_message(message: IncomingRealtimeMessage, user_id: str):
    """Handle subscription management and keepalive messages"""
    if message.type == RealtimeMessageType.PING:
        await connection_manager.send_pong(user_id)

    elif message.type in (RealtimeMessageType.SUBSCRIBE, RealtimeMessageType.UNSUBSCRIBE):
        if message.table is None:
            await connection_manager.send_error(
                user_id,
                "table is required for subscriptions",
                "MISSING_FIELDS"
            )
            return

        if message.type == RealtimeMessageType.SUBSCRIBE:
            connection_manager.subscribe(user_id, message.table)
            await connection_manager.send_ack(user_id, RealtimeMessageType.SUBSCRIBED, message.table)
        else:
            connection_manager.unsubscribe(user_id, message.table)
            await connection_manager.send_ack(user_id, RealtimeMessageType.UNSUBSCRIBED, message.table)

    else:
        await connection_manager.send_error(
            user_id,
            f"Unsupported message type: {message.type.value}",
            "UNSUPPORTED_TYPE"
        )
