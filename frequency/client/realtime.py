from typing import Awaitable, Callable, Iterable, List
import asyncio
import json
import logging

import websockets
from pydantic import ValidationError as SchemaValidationError

from frequency.schemas.realtime import ChangeNotification, RealtimeMessageType, Table

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeNotification], Awaitable[None]]


class RealtimeListener:
    """Subscribes to change notifications and fans them out to handlers.

    Handlers are expected to re-fetch; the payload only says which table
    changed.
    """

    def __init__(self, url: str, token: str, tables: Iterable[Table]):
        self.url = url
        self.token = token
        self.tables = list(tables)
        self._handlers: List[ChangeHandler] = []

    def on_change(self, handler: ChangeHandler):
        self._handlers.append(handler)

    async def run(self):
        """Listen until the connection closes"""
        uri = f"{self.url}?token={self.token}"
        async with websockets.connect(uri) as websocket:
            for table in self.tables:
                await websocket.send(json.dumps({
                    "type": RealtimeMessageType.SUBSCRIBE.value,
                    "table": table.value
                }))
            logger.info(f"Listening for changes on {[table.value for table in self.tables]}")

            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.warning("Received a malformed realtime message")
                    continue
                await self.dispatch(data)

    async def dispatch(self, message: dict):
        if message.get("type") != RealtimeMessageType.CHANGE.value:
            if message.get("type") == RealtimeMessageType.ERROR.value:
                logger.warning(f"Realtime error: {(message.get('data') or {}).get('message')}")
            return

        try:
            notification = ChangeNotification.model_validate(message)
        except SchemaValidationError as e:
            logger.warning(f"Ignoring invalid change notification: {e}")
            return

        results = await asyncio.gather(
            *(handler(notification) for handler in list(self._handlers)),
            return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Change handler failed: {result}")
