"""In-memory data store for players, questions, game sessions and answers.

Pure CRUD: no game rules live here. Methods are async so the game engine can
treat this like any other persistence backend.
"""
import json
import logging
from itertools import count
from typing import Dict, Iterable, List, Optional

import config
from demo_questions import DEMO_QUESTIONS
from errors import NotFoundError
from models import GameSession, Player, PlayerAnswer, Question

logger = logging.getLogger(__name__)


def load_questions(path: str) -> List[Question]:
    """Read a JSON list of questions (snake_case or camelCase keys)."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of questions")
    return [Question.model_validate(q) for q in raw]


class MemStorage:
    def __init__(self, questions: Optional[Iterable[Question]] = None):
        self._seed = list(questions) if questions is not None else None
        self.reset()

    def reset(self, questions: Optional[Iterable[Question]] = None):
        """Drop all data and reseed the question bank."""
        self.players: Dict[int, Player] = {}
        self.questions: Dict[int, Question] = {}
        self.game_sessions: Dict[int, GameSession] = {}
        self.player_answers: Dict[int, PlayerAnswer] = {}
        self._player_ids = count(1)
        self._session_ids = count(1)
        self._answer_ids = count(1)

        if questions is None:
            questions = self._seed
        if questions is None:
            questions = [Question.model_validate(q) for q in DEMO_QUESTIONS]
        for question in questions:
            self.questions[question.id] = question
        self._question_ids = count(max(self.questions, default=0) + 1)

    # --- Players ---

    async def get_player(self, player_id: int) -> Optional[Player]:
        return self.players.get(player_id)

    async def get_player_by_session_id(self, session_id: str) -> Optional[Player]:
        return next((p for p in self.players.values() if p.session_id == session_id), None)

    async def get_all_players(self) -> List[Player]:
        return list(self.players.values())

    async def create_player(self, session_id: str, name: str) -> Player:
        player = Player(id=next(self._player_ids), session_id=session_id, name=name)
        self.players[player.id] = player
        return player

    async def update_player_score(self, player_id: int, score: int) -> Player:
        player = self.players.get(player_id)
        if not player:
            raise NotFoundError(f"Player with id {player_id} not found")
        updated = player.model_copy(update={"score": score})
        self.players[player_id] = updated
        return updated

    # --- Questions ---

    async def get_question(self, question_id: int) -> Optional[Question]:
        return self.questions.get(question_id)

    async def get_all_questions(self) -> List[Question]:
        return list(self.questions.values())

    async def get_questions_by_type(self, question_type: str) -> List[Question]:
        return [q for q in self.questions.values() if q.type == question_type]

    async def create_question(self, **fields) -> Question:
        question = Question.model_validate({**fields, "id": next(self._question_ids)})
        self.questions[question.id] = question
        return question

    # --- Game sessions ---

    async def get_game_session(self, session_id: int) -> Optional[GameSession]:
        return self.game_sessions.get(session_id)

    async def get_active_game_session(self) -> Optional[GameSession]:
        return next((s for s in self.game_sessions.values() if s.status == "active"), None)

    async def create_game_session(self, round: int, mode: str) -> GameSession:
        session = GameSession(id=next(self._session_ids), round=round, mode=mode)
        self.game_sessions[session.id] = session
        return session

    async def update_game_session(self, session_id: int, **updates) -> GameSession:
        session = self.game_sessions.get(session_id)
        if not session:
            raise NotFoundError(f"Game session with id {session_id} not found")
        updated = session.model_copy(update=updates)
        self.game_sessions[session_id] = updated
        return updated

    # --- Player answers ---

    async def get_player_answer(self, answer_id: int) -> Optional[PlayerAnswer]:
        return self.player_answers.get(answer_id)

    async def get_player_answers(self, player_id: int) -> List[PlayerAnswer]:
        return [a for a in self.player_answers.values() if a.player_id == player_id]

    async def get_answers_for_question(self, question_id: int) -> List[PlayerAnswer]:
        return [a for a in self.player_answers.values() if a.question_id == question_id]

    async def create_player_answer(self, player_id: int, question_id: int, answer: str,
                                   is_correct: bool, points_awarded: int,
                                   time_to_answer: Optional[int] = None) -> PlayerAnswer:
        """Append an answer record and apply its points to the player's score."""
        player = self.players.get(player_id)
        if not player:
            raise NotFoundError(f"Player with id {player_id} not found")
        record = PlayerAnswer(
            id=next(self._answer_ids),
            player_id=player_id,
            question_id=question_id,
            answer=answer,
            is_correct=is_correct,
            points_awarded=points_awarded,
            time_to_answer=time_to_answer,
        )
        self.player_answers[record.id] = record
        self.players[player_id] = player.model_copy(update={"score": player.score + points_awarded})
        return record

    async def get_leaderboard(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: p.score, reverse=True)


def _initial_questions() -> Optional[List[Question]]:
    if not config.QUESTIONS_FILE:
        return None
    questions = load_questions(config.QUESTIONS_FILE)
    logger.info("Loaded %d questions from %s", len(questions), config.QUESTIONS_FILE)
    return questions


storage = MemStorage(_initial_questions())
