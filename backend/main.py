from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging
import socket as socketlib

import config
config.setup_logging()

from errors import GameError, NotFoundError
from socket_manager import socket_manager
from storage import storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting buzzer quiz backend")
    yield
    await socket_manager.engine.shutdown()
    logger.info("Shutting down buzzer quiz backend")


app = FastAPI(title="Buzzer Quiz Backend", lifespan=lifespan)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def get_local_ip():
    try:
        s = socketlib.socket(socketlib.AF_INET, socketlib.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except Exception:
        return "127.0.0.1"


@app.get("/api/questions")
async def list_questions():
    questions = await storage.get_all_questions()
    return [q.to_wire() for q in questions]


@app.get("/api/questions/{question_id}")
async def get_question(question_id: int):
    question = await storage.get_question(question_id)
    if not question:
        raise NotFoundError("Question not found")
    return question.to_wire()


@app.get("/api/leaderboard")
async def get_leaderboard():
    leaderboard = await storage.get_leaderboard()
    return [p.to_wire() for p in leaderboard]


@app.get("/api/players")
async def list_players():
    players = await storage.get_all_players()
    connected = set(socket_manager.registry.connected_player_ids())
    return [{**p.to_wire(), "connected": p.id in connected} for p in players]


@app.get("/api/players/{player_id}/answers")
async def get_player_answers(player_id: int):
    if not await storage.get_player(player_id):
        raise NotFoundError("Player not found")
    answers = await storage.get_player_answers(player_id)
    return [a.to_wire() for a in answers]


@app.get("/api/game")
async def get_game_state():
    """Current game snapshot: session, question, remaining time, buzzer."""
    return socket_manager.engine.snapshot()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await socket_manager.connect(websocket)


# Configure CORS
if config.ALLOWED_ORIGINS.strip():
    origins = [o.strip() for o in config.ALLOWED_ORIGINS.split(",")]
    # Explicit origins also apply to the WebSocket endpoint
    socket_manager.allowed_origins = origins
else:
    local_ip = get_local_ip()
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        f"http://{local_ip}:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["Content-Type"],
)


@app.get("/")
async def root():
    return {"message": "Buzzer Quiz API is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    uvicorn.run("main:app", host=config.HOST, port=config.PORT, reload=True)
