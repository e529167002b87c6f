"""The single active game: rounds, questions, timer, buzzer and scoring.

Every event (client command, disconnect, timer tick, delayed advance) runs
under ``GameEngine.lock``, one at a time in arrival order. The public
operations below assume the caller already holds the lock; ``handle`` and
``disconnect`` are the locked entry points used by the socket layer.
"""
import asyncio
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Optional, Set

import config
from connections import Connection, ConnectionRegistry
from errors import AuthorizationError, GameError, NotFoundError, StateError, ValidationError
from models import GameSession, Question
from question_selector import select_question
from scoring import evaluate_answer

logger = logging.getLogger(__name__)


@dataclass
class BuzzerState:
    active: bool = False
    first_player: Optional[Connection] = None
    timestamp: Optional[float] = None


def _clean_name(name: str) -> str:
    name = re.sub(r'<[^>]+>', '', name)
    name = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', name)
    return name.strip()


class GameEngine:
    def __init__(self, store, registry: ConnectionRegistry,
                 time_limit: Optional[int] = None, tick_seconds: Optional[float] = None,
                 rng: Optional[random.Random] = None):
        self.store = store
        self.registry = registry
        self.time_limit = time_limit if time_limit is not None else config.QUESTION_TIME_LIMIT
        self.tick_seconds = tick_seconds if tick_seconds is not None else config.TICK_SECONDS
        self.rng = rng or random.Random()
        self.lock = asyncio.Lock()

        self.session: Optional[GameSession] = None
        self.current_question: Optional[Question] = None
        self.time_left = 0
        self.buzzer = BuzzerState()
        self.answered_players: Set[int] = set()
        self.resolved = False
        self.question_started_at = 0.0

        self._timer_task: Optional[asyncio.Task] = None
        self._advance_task: Optional[asyncio.Task] = None
        # Bumped on every question transition; scheduled work carrying an older value is stale
        self._generation = 0

    @property
    def phase(self) -> str:
        if self.session is None:
            return "idle"
        if self.current_question is None:
            return "round_active"
        if self.resolved:
            return "question_resolved"
        return "question_open"

    @property
    def buzzer_round(self) -> bool:
        return self.session is not None and self.session.mode == "manual" and self.session.round == 2

    # --- Locked entry points ---

    async def handle(self, connection: Connection, command):
        async with self.lock:
            if command.required_role and connection.role != command.required_role:
                raise AuthorizationError(command.denied_message)
            await command.apply(self, connection)

    async def disconnect(self, connection: Connection):
        async with self.lock:
            self.registry.remove(connection.id)
            logger.info("Client %s disconnected", connection.id)
            await self._release_buzzer(connection)
            await self.broadcast_player_list()

    async def shutdown(self):
        self.cancel_timers()

    # --- Operations ---

    async def register(self, connection: Connection, role: str, name: Optional[str] = None,
                       session_id: Optional[str] = None):
        try:
            if role not in config.VALID_ROLES:
                raise ValidationError(f"Invalid role: {role}")
            if role != "player":
                await self._release_buzzer(connection)
                connection.role = role
                connection.player_id = None
                logger.info("Client %s registered as %s", connection.id, role)
                await self.registry.send(connection, {
                    "type": "registerResponse", "success": True, "data": {"role": role},
                })
                return

            name = _clean_name(name or "")
            if not name:
                raise ValidationError("Player name is required")
            if len(name) > config.MAX_PLAYER_NAME_LENGTH:
                raise ValidationError(f"Player name must be 1-{config.MAX_PLAYER_NAME_LENGTH} characters")
        except ValidationError as exc:
            logger.warning("Registration of %s rejected: %s", connection.id, exc.message)
            await self.registry.send(connection, {"type": "registerResponse", "success": False, "error": exc.message})
            return

        await self._release_buzzer(connection)
        session_id = session_id or connection.id
        player = await self.store.get_player_by_session_id(session_id)
        if player is None:
            player = await self.store.create_player(session_id, name)
        else:
            logger.info("Player '%s' (ID %d) rejoined with score %d", player.name, player.id, player.score)

        connection.role = "player"
        connection.player_id = player.id
        connection.session_id = session_id
        logger.info("Client %s registered as player %s (ID: %d)", connection.id, player.name, player.id)
        await self.registry.send(connection, {
            "type": "registerResponse", "success": True, "data": {"role": "player", "player": player.to_wire()},
        })
        await self.broadcast_player_list()

    async def start_game(self, round: int, mode: str):
        if round not in config.VALID_ROUNDS:
            raise ValidationError(f"Round must be one of: {', '.join(map(str, config.VALID_ROUNDS))}")
        if mode not in config.VALID_MODES:
            raise ValidationError(f"Mode must be one of: {', '.join(config.VALID_MODES)}")

        if self.session is not None:
            await self.end_game()

        self.session = await self.store.create_game_session(round, mode)
        self._clear_question_state()

        await self.registry.broadcast_all({"type": "gameStarted", "data": {"gameSession": self.session.to_wire()}})
        logger.info("Game %d started: round %d, mode %s", self.session.id, round, mode)

        if mode == "auto":
            await self.next_question()

    async def next_question(self):
        if self.session is None:
            raise StateError("No active game session")

        self.cancel_timers()
        question_type = config.ROUND_QUESTION_TYPES[self.session.round]
        question = await select_question(self.store, question_type,
                                         exclude_id=self.session.current_question_id, rng=self.rng)

        self.buzzer = BuzzerState()
        self.answered_players.clear()
        self.resolved = False
        self.current_question = question
        self.session = await self.store.update_game_session(self.session.id, current_question_id=question.id)
        self.question_started_at = time.monotonic()

        if self.session.mode == "auto":
            self.time_left = self.time_limit
            self._start_timer()
        else:
            self.time_left = 0
            if self.session.round == 2:
                self.buzzer.active = True

        await self.registry.broadcast_all({
            "type": "newQuestion",
            "data": {
                "question": question.public(),
                "timeLeft": self.time_left,
                "buzzerActive": self.buzzer.active,
            },
        })
        logger.info("New question %d: %s", question.id, question.text)

    async def press_buzzer(self, connection: Connection):
        if self.current_question is None or not self.buzzer.active or connection.player_id is None:
            return

        if self.buzzer.first_player is None and connection.player_id not in self.answered_players:
            self.buzzer.first_player = connection
            self.buzzer.timestamp = time.monotonic()
            player = await self.store.get_player(connection.player_id)
            await self.registry.broadcast_all({
                "type": "buzzerPressed",
                "data": {"playerId": connection.player_id, "playerName": player.name if player else None},
            })
            await self.registry.send(connection, {"type": "buzzerSuccess", "data": {"canAnswer": True}})
            logger.info("Player %d pressed the buzzer first", connection.player_id)
        else:
            await self.registry.send(connection, {"type": "buzzerFail", "data": {"canAnswer": False}})

    async def select_player(self, player_id: int):
        if self.session is None or self.session.mode != "manual":
            raise StateError("Players can only be selected in manual mode")
        target = self.registry.find_by_player(player_id)
        if target is None:
            raise NotFoundError(f"Player {player_id} is not connected")

        if self.buzzer_round and self.buzzer.active:
            displaced = self.buzzer.first_player
            if displaced is not None and displaced is not target:
                await self.registry.send(displaced, {"type": "buzzerFail", "data": {"canAnswer": False}})
            self.buzzer.first_player = target
            self.buzzer.timestamp = time.monotonic()

        player = await self.store.get_player(player_id)
        await self.registry.send(target, {"type": "playerSelected", "data": {"canAnswer": True}})
        await self.registry.broadcast_all({
            "type": "playerSelectionChanged",
            "data": {"selectedPlayerId": player_id, "playerName": player.name if player else None},
        })
        logger.info("Admin selected player %d", player_id)

    async def submit_answer(self, connection: Connection, raw_answer: str):
        if self.current_question is None or self.resolved or connection.player_id is None:
            return
        if connection.player_id in self.answered_players:
            return
        if self.buzzer_round and self.buzzer.first_player is not connection:
            return

        question = self.current_question
        submitted = raw_answer.strip()
        is_correct, points = evaluate_answer(question, submitted)
        started = self.buzzer.timestamp or self.question_started_at
        await self.store.create_player_answer(
            player_id=connection.player_id,
            question_id=question.id,
            answer=submitted,
            is_correct=is_correct,
            points_awarded=points,
            time_to_answer=int((time.monotonic() - started) * 1000),
        )
        self.answered_players.add(connection.player_id)

        player = await self.store.get_player(connection.player_id)
        await self.registry.send(connection, {
            "type": "answerResult",
            "data": {"isCorrect": is_correct, "pointsAwarded": points, "playerScore": player.score},
        })
        await self.registry.broadcast_all({
            "type": "playerAnswered",
            "data": {
                "playerId": player.id,
                "playerName": player.name,
                "isCorrect": is_correct,
                "pointsAwarded": points,
                "answer": submitted,
            },
        })

        if self.buzzer_round:
            if is_correct:
                self.buzzer = BuzzerState()
                self.resolved = True
                self._schedule_advance()
            else:
                # Keep the buzzer armed so someone else can try
                self.buzzer.first_player = None
                self.buzzer.timestamp = None
                await self.registry.broadcast_all({"type": "buzzerReset", "data": {"buzzerActive": True}})

        await self.broadcast_leaderboard()
        logger.info("Player %s answered %r: correct=%s, points=%d", player.name, submitted, is_correct, points)

    async def end_game(self):
        if self.session is None:
            return
        completed = await self.store.update_game_session(self.session.id, status="completed")
        self.session = None
        self._clear_question_state()

        await self.registry.broadcast_all({
            "type": "gameEnded",
            "data": {"message": "Game has ended", "gameSession": completed.to_wire()},
        })
        await self.broadcast_leaderboard()
        logger.info("Game %d ended", completed.id)

    def snapshot(self) -> dict:
        return {
            "gameSession": self.session.to_wire() if self.session else None,
            "currentQuestion": self.current_question.public() if self.current_question else None,
            "timeLeft": self.time_left,
            "buzzerActive": self.buzzer.active,
            "phase": self.phase,
        }

    async def broadcast_leaderboard(self):
        leaderboard = await self.store.get_leaderboard()
        await self.registry.broadcast_all({
            "type": "leaderboard",
            "data": {"leaderboard": [p.to_wire() for p in leaderboard]},
        })

    async def broadcast_player_list(self):
        players = await self.store.get_all_players()
        await self.registry.broadcast_all({
            "type": "playerList",
            "data": {
                "players": [p.to_wire() for p in players],
                "connectedPlayerIds": self.registry.connected_player_ids(),
            },
        })

    async def _release_buzzer(self, connection: Connection):
        """Free the buzzer if this connection holds it and is going away or rebinding."""
        if self.buzzer.first_player is not connection:
            return
        self.buzzer.first_player = None
        self.buzzer.timestamp = None
        await self.registry.broadcast_all({"type": "buzzerReset", "data": {"buzzerActive": self.buzzer.active}})

    # --- Timers ---

    def _clear_question_state(self):
        self.cancel_timers()
        self.current_question = None
        self.time_left = 0
        self.buzzer = BuzzerState()
        self.answered_players.clear()
        self.resolved = False

    def cancel_timers(self):
        self._generation += 1
        for task in (self._timer_task, self._advance_task):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
        self._timer_task = None
        self._advance_task = None

    def _start_timer(self):
        if self._timer_task is not None:
            self._timer_task.cancel()
        self._timer_task = asyncio.create_task(self._run_timer(self._generation))

    async def _run_timer(self, generation: int):
        """Tick once per time unit until the question runs out of time."""
        try:
            while True:
                await asyncio.sleep(self.tick_seconds)
                async with self.lock:
                    if generation != self._generation:
                        return
                    self.time_left -= 1
                    await self.registry.broadcast_all({"type": "timeUpdate", "data": {"timeLeft": self.time_left}})
                    if self.time_left > 0:
                        continue

                    self._timer_task = None
                    self.resolved = True
                    await self.registry.broadcast_all({
                        "type": "timeUp",
                        "data": {"correctAnswer": self.current_question.correct_answer},
                    })
                    if self.session is not None and self.session.status == "active" and self.session.mode == "auto":
                        self._schedule_advance()
                    return
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Error in question timer")

    def _schedule_advance(self):
        self._advance_task = asyncio.create_task(self._advance_after_delay(self._generation))

    async def _advance_after_delay(self, generation: int):
        try:
            await asyncio.sleep(self.tick_seconds * config.ADVANCE_DELAY_TICKS)
            async with self.lock:
                if generation != self._generation:
                    return
                self._advance_task = None
                try:
                    await self.next_question()
                except GameError as exc:
                    logger.warning("Automatic advance failed: %s", exc.message)
                    await self.registry.broadcast_role("admin", exc.to_message())
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Error advancing to the next question")
