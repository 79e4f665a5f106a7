import json
import asyncio
from typing import Dict, Iterable, List, Optional, Set
from fastapi import WebSocket
from datetime import datetime, timezone
import logging

from frequency.schemas.realtime import (
    RealtimeMessageType, ChangeEvent, ChangeNotification, Table
)

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Per-table change feed delivered over WebSocket connections"""

    def __init__(self):
        # Active connections: user_id -> WebSocket
        self.active_connections: Dict[str, WebSocket] = {}

        # Subscriptions: table -> Set[user_id]
        self.table_subscribers: Dict[Table, Set[str]] = {}

        # user_id -> Set[table]
        self.user_tables: Dict[str, Set[Table]] = {}

    async def connect(self, websocket: WebSocket, user_id: str):
        """Accept new WebSocket connection"""
        await websocket.accept()

        # Disconnect existing connection if any
        old_websocket = self.active_connections.get(user_id)
        if old_websocket is not None:
            try:
                await old_websocket.close()
            except RuntimeError:
                logger.debug(f"Previous connection of user {user_id} was already closed")
            self.disconnect(user_id)

        self.active_connections[user_id] = websocket
        self.user_tables.setdefault(user_id, set())

        logger.info(f"User {user_id} connected to realtime feed")

    def disconnect(self, user_id: str):
        """Handle WebSocket disconnection"""
        self.active_connections.pop(user_id, None)

        for table in self.user_tables.pop(user_id, set()):
            subscribers = self.table_subscribers.get(table)
            if subscribers is not None:
                subscribers.discard(user_id)
                if not subscribers:
                    del self.table_subscribers[table]

        logger.info(f"User {user_id} disconnected from realtime feed")

    def subscribe(self, user_id: str, table: Table):
        self.user_tables.setdefault(user_id, set()).add(table)
        self.table_subscribers.setdefault(table, set()).add(user_id)
        logger.debug(f"User {user_id} subscribed to {table.value}")

    def unsubscribe(self, user_id: str, table: Table):
        if user_id in self.user_tables:
            self.user_tables[user_id].discard(table)

        if table in self.table_subscribers:
            self.table_subscribers[table].discard(user_id)
            if not self.table_subscribers[table]:
                del self.table_subscribers[table]

        logger.debug(f"User {user_id} unsubscribed from {table.value}")

    def subscribers_of(self, table: Table) -> Set[str]:
        return set(self.table_subscribers.get(table, set()))

    async def send_personal_message(self, user_id: str, message: dict) -> bool:
        """Send message to a specific user"""
        websocket = self.active_connections.get(user_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(json.dumps(message, default=str))
            return True
        except Exception as e:
            logger.warning(f"Error sending message to user {user_id}: {e}")
            # Remove failed connection
            self.disconnect(user_id)
            return False

    async def publish_change(
        self,
        table: Table,
        event: ChangeEvent,
        record_id,
        audience: Optional[Iterable[str]] = None
    ) -> int:
        """Notify subscribers of a table that one of its rows changed.

        Only subscribers in ``audience`` receive the notification; ``None``
        means every subscriber may see the row. Returns the number of
        successful deliveries.
        """
        recipients = self.subscribers_of(table)
        if audience is not None:
            recipients &= set(audience)

        if not recipients:
            return 0

        notification = ChangeNotification(
            table=table,
            event=event,
            record_id=str(record_id),
            timestamp=datetime.now(timezone.utc)
        )
        message = notification.model_dump(mode="json")

        results = await asyncio.gather(
            *(self.send_personal_message(user_id, message) for user_id in recipients),
            return_exceptions=True
        )
        delivered = sum(1 for result in results if result is True)
        logger.debug(f"{event.value} on {table.value}:{record_id} delivered to {delivered}/{len(recipients)}")
        return delivered

    def get_online_users(self) -> List[str]:
        return list(self.active_connections.keys())

    async def send_ack(self, user_id: str, message_type: RealtimeMessageType, table: Table):
        await self.send_personal_message(user_id, {
            "type": message_type,
            "table": table,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    async def send_error(self, user_id: str, error_message: str, error_code: Optional[str] = None):
        """Send error message to user"""
        error_msg = {
            "type": RealtimeMessageType.ERROR,
            "data": {
                "message": error_message,
                "code": error_code
            },
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        await self.send_personal_message(user_id, error_msg)

    async def send_pong(self, user_id: str):
        """Send pong response to ping"""
        pong_msg = {
            "type": RealtimeMessageType.PONG,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        await self.send_personal_message(user_id, pong_msg)


# Global connection manager instance
connection_manager = ConnectionManager()
