from fastapi import WebSocket, WebSocketDisconnect
from typing import List
import json
import time
import logging

import config
from commands import parse_command
from connections import Connection, ConnectionRegistry
from errors import GameError
from game_engine import GameEngine
from storage import storage

logger = logging.getLogger(__name__)


class SocketManager:
    def __init__(self, store=None):
        self.store = store if store is not None else storage
        self.allowed_origins: List[str] = []
        self.reset()

    def reset(self):
        """Start over with no connections and no running game."""
        self.registry = ConnectionRegistry()
        self.engine = GameEngine(self.store, self.registry)

    async def connect(self, websocket: WebSocket):
        # Validate WebSocket origin
        origin = websocket.headers.get("origin", "")
        if self.allowed_origins and origin not in self.allowed_origins:
            logger.warning("Rejected WebSocket from unauthorized origin: %s", origin)
            await websocket.close(code=1008)
            return

        await websocket.accept()
        connection = Connection(websocket)
        self.registry.add(connection)
        logger.info("Client connected: %s", connection.id)

        # Late joiners see the game that is already running
        if self.engine.session is not None:
            await self.registry.send(connection, {"type": "gameState", "data": self.engine.snapshot()})

        try:
            while True:
                data = await websocket.receive_text()

                # Enforce message size limit
                if len(data) > config.MAX_WS_MESSAGE_SIZE:
                    await self.registry.send(connection, {"type": "error", "error": "Message too large"})
                    continue

                # Per-client rate limiting
                now = time.time()
                timestamps = connection.msg_timestamps
                timestamps[:] = [t for t in timestamps if now - t < 1.0]
                if len(timestamps) >= config.WS_RATE_LIMIT_PER_SEC:
                    await self.registry.send(connection, {"type": "error", "error": "Too many messages"})
                    continue
                timestamps.append(now)

                await self.handle_message(connection, data)
        except WebSocketDisconnect:
            logger.info("Client %s closed the connection", connection.id)
        except Exception:
            logger.exception("WebSocket error for client %s", connection.id)
        finally:
            await self.engine.disconnect(connection)

    async def handle_message(self, connection: Connection, data: str):
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            message = None
        if not isinstance(message, dict):
            logger.warning("Malformed message from client %s: %s", connection.id, data[:100])
            await self.registry.send(connection, {"type": "error", "error": "Invalid message format"})
            return

        logger.debug("Message received from %s: %s", connection.id, message.get("type"))
        try:
            command = parse_command(message)
            await self.engine.handle(connection, command)
        except GameError as exc:
            await self.report_error(connection, exc)
        except Exception as exc:
            logger.exception("Error processing %s from client %s", message.get("type"), connection.id)
            await self.registry.send(connection, {
                "type": "error",
                "error": "Failed to process message",
                "details": str(exc),
            })

    async def report_error(self, connection: Connection, exc: GameError):
        logger.warning("%s from client %s: %s", type(exc).__name__, connection.id, exc.message)
        if exc.admin_only:
            await self.registry.broadcast_role("admin", exc.to_message())
            if connection.role == "admin":
                return
        await self.registry.send(connection, exc.to_message())


socket_manager = SocketManager()
