"""FastAPI game-session service for playing XOArena over HTTP."""

from __future__ import annotations

import csv
import io
import json
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import AIPlayer, Difficulty
from .analysis import detect_pattern, heatmap
from .game import (
    ONGOING,
    Board,
    Cell,
    IllegalMoveError,
    Outcome,
    Player,
    Status,
    apply_move,
    empty_board,
    evaluate,
    next_player,
)

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    SINGLE_PLAYER = "single-player"
    LOCAL_MULTIPLAYER = "local-multiplayer"


@dataclass
class GameSession:
    """One game: the current board snapshot plus whoever may write it next."""

    mode: GameMode
    ai: Optional[AIPlayer]
    board: Board = field(default_factory=empty_board)
    current_player: Player = Cell.X
    outcome: Outcome = ONGOING
    move_log: List[Dict[str, object]] = field(default_factory=list)
    ai_pending: bool = False
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, position: int, player: Player) -> None:
        """Apply ``position`` for ``player``; caller holds ``lock``."""
        self.board = apply_move(self.board, position, player)
        self.move_log.append(
            {"position": position, "player": player.value, "timestamp": time.time()}
        )
        self.current_player = next_player(player)
        self.outcome = evaluate(self.board)
        if self.outcome.is_over:
            self.finished_at = time.time()

    def duration(self, now: Optional[float] = None) -> int:
        """Whole seconds from creation to finish (or to ``now`` while playing)."""
        end = self.finished_at
        if end is None:
            end = time.time() if now is None else now
        return int(end - self.created_at)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="XOArena", description="Tic-tac-toe against people or the AI")


AI_THINK_DELAY: Tuple[float, float] = (0.3, 0.8)
DEFAULT_DIFFICULTY = Difficulty.MEDIUM


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = GameMode.SINGLE_PLAYER
    difficulty: Difficulty = Field(
        default=DEFAULT_DIFFICULTY, description="AI strategy tier"
    )
    ai_player: str = Field(default="O", alias="aiPlayer")

    @field_validator("ai_player")
    @classmethod
    def ensure_mark(cls, value: str) -> str:
        mark = value.strip().upper()
        if mark not in ("X", "O"):
            raise ValueError("aiPlayer must be 'X' or 'O'")
        return mark


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    position: int = Field(ge=0, le=8)


def _create_session(request: NewGameRequest) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    ai: Optional[AIPlayer] = None
    if request.mode is GameMode.SINGLE_PLAYER:
        ai = AIPlayer(player=Cell(request.ai_player), difficulty=request.difficulty)
    session = GameSession(mode=request.mode, ai=ai)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "game %s created (%s, %s)",
        session_id,
        request.mode.value,
        request.difficulty.value if ai else "no ai",
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _ai_to_move(session: GameSession) -> bool:
    return (
        session.ai is not None
        and not session.outcome.is_over
        and session.current_player is session.ai.player
    )


def _record_move(
    game_id: str, session: GameSession, position: int, player: Player
) -> None:
    """Apply a move and log the result if it ends the game; caller holds ``lock``."""
    session.record(position, player)
    if session.outcome.is_over:
        logger.info(
            "game %s finished: %s", game_id, _winner_label(session.outcome)
        )


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not session.ai or not _ai_to_move(session):
                return
            position = session.ai.choose(session.board)
            _record_move(game_id, session, position, session.ai.player)
            logger.debug("game %s: AI played %d", game_id, position)
        finally:
            session.ai_pending = False


def _winner_label(outcome: Outcome) -> Optional[str]:
    if outcome.status is Status.WON and outcome.winner is not None:
        return outcome.winner.value
    if outcome.status is Status.DRAW:
        return "draw"
    return None


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        outcome = session.outcome
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.ai.difficulty.value if session.ai else None,
            "aiPlayer": session.ai.player.value if session.ai else None,
            "board": [c.value if c is not Cell.EMPTY else "" for c in session.board],
            "currentPlayer": session.current_player.value,
            "status": "finished" if outcome.is_over else "playing",
            "winner": _winner_label(outcome),
            "winningLine": list(outcome.line) if outcome.line else None,
            "moveHistory": list(session.move_log),
            "aiPending": session.ai_pending,
            "createdAt": session.created_at,
            "finishedAt": session.finished_at,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    position: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        if session.outcome.is_over:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai is not None and session.current_player is session.ai.player:
            raise HTTPException(status_code=400, detail="It is the AI's turn")

        try:
            _record_move(game_id, session, position, session.current_player)
        except IllegalMoveError as exc:
            logger.warning("game %s: rejected move %s (%s)", game_id, position, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        should_schedule_ai = _ai_to_move(session)
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request)
    with session.lock:
        ai_opens = _ai_to_move(session)
        session.ai_pending = ai_opens
    if ai_opens:
        background_tasks.add_task(_run_ai_turn, game_id)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.position, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}/analysis")
def analyze_game(game_id: str) -> Dict[str, object]:
    """Heatmap and play style of the human side(s) of a game."""

    session = _get_session(game_id)
    with session.lock:
        ai_mark = session.ai.player.value if session.ai else None
        moves = [
            int(entry["position"])  # type: ignore[call-overload]
            for entry in session.move_log
            if entry["player"] != ai_mark
        ]
    pattern = detect_pattern(moves)
    return {
        "id": game_id,
        "heatmap": heatmap(moves),
        "preferredPositions": pattern.preferred_positions,
        "tendency": pattern.tendency.value,
    }


@app.get("/api/stats")
def stats() -> Dict[str, int]:
    totals = {"totalGames": 0, "activeGames": 0, "finishedGames": 0}
    results = {"xWins": 0, "oWins": 0, "draws": 0}
    for session in list(SESSIONS.values()):
        totals["totalGames"] += 1
        outcome = session.outcome
        if not outcome.is_over:
            totals["activeGames"] += 1
            continue
        totals["finishedGames"] += 1
        if outcome.status is Status.DRAW:
            results["draws"] += 1
        elif outcome.winner is Cell.X:
            results["xWins"] += 1
        else:
            results["oWins"] += 1
    return {**totals, **results}


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


EXPORT_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("id", "ID"),
    ("mode", "Mode"),
    ("difficulty", "Difficulty"),
    ("winner", "Winner"),
    ("status", "Status"),
    ("moves", "Moves"),
    ("duration", "Duration"),
    ("createdAt", "Created At"),
    ("finishedAt", "Finished At"),
)


def _export_row(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        return {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.ai.difficulty.value if session.ai else None,
            "winner": _winner_label(session.outcome),
            "status": "finished" if session.outcome.is_over else "playing",
            "moves": "".join(str(entry["position"]) for entry in session.move_log),
            "duration": session.duration(),
            "createdAt": session.created_at,
            "finishedAt": session.finished_at,
        }


@app.get("/api/games/active")
def active_games() -> List[Dict[str, object]]:
    now = time.time()
    listing: List[Dict[str, object]] = []
    for game_id, session in list(SESSIONS.items()):
        with session.lock:
            if session.outcome.is_over:
                continue
            listing.append(
                {
                    "gameId": game_id,
                    "mode": session.mode.value,
                    "duration": session.duration(now),
                    "status": "playing",
                }
            )
    return listing


@app.get("/api/games/export")
def export_games(
    export_format: ExportFormat = Query(ExportFormat.JSON, alias="format")
) -> Response:
    """Dump every session as a JSON array or a CSV sheet, newest first."""

    ordered = sorted(
        SESSIONS.items(), key=lambda item: item[1].created_at, reverse=True
    )
    rows = [_export_row(game_id, session) for game_id, session in ordered]
    filename = f"games-export-{int(time.time() * 1000)}.{export_format.value}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if export_format is ExportFormat.JSON:
        return Response(
            content=json.dumps(rows, indent=2),
            media_type="application/json",
            headers=headers,
        )

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([title for _, title in EXPORT_COLUMNS])
    for row in rows:
        writer.writerow(
            ["N/A" if row[key] is None else row[key] for key, _ in EXPORT_COLUMNS]
        )
    return Response(content=buffer.getvalue(), media_type="text/csv", headers=headers)


@app.get("/health")
def health() -> Dict[str, object]:
    return {"status": "ok", "timestamp": time.time()}
