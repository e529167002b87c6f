"""Inbound WebSocket commands.

Each message kind is its own pydantic model declaring the role allowed to
send it; the engine checks that role once, before applying any command.
"""
from typing import ClassVar, Dict, Optional, Type

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from errors import ValidationError


def _strict_int(value):
    # JSON booleans and numeric strings are not ids or round numbers
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("must be an integer")
    return value


class Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: ClassVar[str] = ""
    required_role: ClassVar[Optional[str]] = None
    denied_message: ClassVar[str] = "Not allowed"

    async def apply(self, engine, connection):
        raise NotImplementedError


class Register(Command):
    kind = "register"

    role: str
    name: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    async def apply(self, engine, connection):
        await engine.register(connection, self.role, self.name, self.session_id)


class StartGame(Command):
    kind = "startGame"
    required_role = "admin"
    denied_message = "Only admins can start a game"

    round: int
    mode: str

    @field_validator("round", mode="before")
    @classmethod
    def check_round(cls, value):
        return _strict_int(value)

    async def apply(self, engine, connection):
        await engine.start_game(self.round, self.mode)


class NextQuestion(Command):
    kind = "nextQuestion"
    required_role = "admin"
    denied_message = "Only admins can control questions"

    async def apply(self, engine, connection):
        await engine.next_question()


class SelectPlayer(Command):
    kind = "selectPlayer"
    required_role = "admin"
    denied_message = "Only admins can select players"

    player_id: int = Field(alias="playerId")

    @field_validator("player_id", mode="before")
    @classmethod
    def check_player_id(cls, value):
        return _strict_int(value)

    async def apply(self, engine, connection):
        await engine.select_player(self.player_id)


class SubmitAnswer(Command):
    kind = "submitAnswer"
    required_role = "player"
    denied_message = "Only players can submit answers"

    answer: str

    async def apply(self, engine, connection):
        await engine.submit_answer(connection, self.answer)


class PressBuzzer(Command):
    kind = "pressBuzzer"
    required_role = "player"
    denied_message = "Only players can use the buzzer"

    async def apply(self, engine, connection):
        await engine.press_buzzer(connection)


class EndGame(Command):
    kind = "endGame"
    required_role = "admin"
    denied_message = "Only admins can end a game"

    async def apply(self, engine, connection):
        await engine.end_game()


COMMANDS: Dict[str, Type[Command]] = {
    cls.kind: cls
    for cls in (Register, StartGame, NextQuestion, SelectPlayer, SubmitAnswer, PressBuzzer, EndGame)
}


def parse_command(message: dict) -> Command:
    """Turn a decoded ``{"type": ..., "data": {...}}`` frame into a command."""
    msg_type = message.get("type")
    command_cls = COMMANDS.get(msg_type)
    if command_cls is None:
        raise ValidationError(f"Unknown message type: {msg_type}")
    data = message.get("data") or {}
    if not isinstance(data, dict):
        raise ValidationError(f"Invalid payload for {msg_type}")
    try:
        return command_cls.model_validate(data)
    except pydantic.ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ValidationError(f"Invalid payload for {msg_type}", details=f"Invalid fields: {fields}")
