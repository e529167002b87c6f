"""Live connection tracking and message fan-out."""
import json
import logging
import uuid
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, websocket, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex[:12]
        self.websocket = websocket
        self.role = "spectator"  # until registered
        self.player_id: Optional[int] = None
        self.session_id: Optional[str] = None
        self.msg_timestamps: List[float] = []

    async def send_text(self, text: str):
        await self.websocket.send_text(text)

    def __repr__(self):
        return f"<Connection {self.id} role={self.role} player={self.player_id}>"


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def __len__(self):
        return len(self._connections)

    def add(self, connection: Connection):
        self._connections[connection.id] = connection

    def remove(self, connection_id: str) -> Optional[Connection]:
        return self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def find_by_player(self, player_id: int) -> Optional[Connection]:
        # Newest binding wins when a player reconnected before the old socket closed
        for connection in reversed(list(self._connections.values())):
            if connection.player_id == player_id:
                return connection
        return None

    def by_role(self, role: str) -> List[Connection]:
        return [c for c in self._connections.values() if c.role == role]

    def connected_player_ids(self) -> List[int]:
        return [c.player_id for c in self._connections.values() if c.player_id is not None]

    async def send(self, connection: Connection, message: dict) -> bool:
        try:
            await connection.send_text(json.dumps(message))
            return True
        except Exception:
            logger.warning("Send of %s to %s failed", message.get("type"), connection.id)
            return False

    async def broadcast_all(self, message: dict):
        await self._fan_out(list(self._connections.values()), message)

    async def broadcast_role(self, role: str, message: dict):
        await self._fan_out(self.by_role(role), message)

    async def _fan_out(self, recipients: List[Connection], message: dict):
        text = json.dumps(message)
        failed = []
        for connection in recipients:
            try:
                await connection.send_text(text)
            except Exception:
                failed.append(connection.id)
        if failed:
            logger.warning("Broadcast of %s failed for %d connection(s): %s",
                           message.get("type"), len(failed), ", ".join(failed))
