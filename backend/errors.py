"""Errors raised by the game core and reported back to clients.

Every failure is scoped to the single event that caused it: the socket layer
catches these, turns them into ``error`` frames and keeps the connection open.
"""
from typing import Optional


class GameError(Exception):
    status_code = 400
    # StateError / ExhaustionError go to every admin, the rest only to the sender
    admin_only = False

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_message(self) -> dict:
        message = {"type": "error", "error": self.message}
        if self.details:
            message["details"] = self.details
        return message


class ValidationError(GameError):
    """Malformed or missing fields: empty player name, invalid round or mode."""


class AuthorizationError(GameError):
    status_code = 403


class StateError(GameError):
    """Action not valid in the current game phase."""
    status_code = 409
    admin_only = True


class ExhaustionError(GameError):
    status_code = 409
    admin_only = True


class NotFoundError(GameError):
    status_code = 404
