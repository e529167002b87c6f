from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

QuestionType = Literal["multiple_choice", "short_answer"]
GameMode = Literal["auto", "manual"]
SessionStatus = Literal["active", "completed"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base for stored records. Field names are snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Player(Record):
    id: int
    session_id: str
    name: str
    score: int = 0
    created_at: datetime = Field(default_factory=_now)


class Question(Record):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    type: QuestionType
    category: str
    options: Optional[List[str]] = None  # multiple choice only, index-addressable
    correct_answer: str
    points: int
    wrong_answer_penalty: int

    @model_validator(mode="after")
    def check_options(self) -> "Question":
        if self.type == "multiple_choice" and not self.options:
            raise ValueError("Multiple choice questions need options")
        return self

    def public(self) -> dict:
        """Wire form without the correct answer, for players and the display."""
        data = self.to_wire()
        data.pop("correctAnswer", None)
        return data


class GameSession(Record):
    id: int
    round: int
    mode: GameMode
    status: SessionStatus = "active"
    current_question_id: Optional[int] = None
    created_at: datetime = Field(default_factory=_now)


class PlayerAnswer(Record):
    id: int
    player_id: int
    question_id: int
    answer: str
    is_correct: bool
    points_awarded: int
    time_to_answer: Optional[int] = None  # milliseconds since question/buzzer activation
    created_at: datetime = Field(default_factory=_now)
