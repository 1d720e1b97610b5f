"""
FastAPI backend for Balcony Wars.
Provides REST API endpoints for match state management and actions.
Matches live in memory for the lifetime of the process.
"""

import logging
import uuid
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from balcony_wars.config import API_HOST, API_PORT, CORS_ORIGINS, DEFAULT_RULESET_ID, MAX_MATCHES
from balcony_wars.engine.definitions import list_rulesets, load_class_definitions
from balcony_wars.engine.errors import GameRuleError
from balcony_wars.engine.events import GameEvent
from balcony_wars.engine.queries import get_elevator_targets, get_move_preview
from balcony_wars.engine.session import MatchSession

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Balcony Wars API",
    description="Local API for Balcony Wars - a two-faction turn-based board game of pigeons vs humans",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("[500] %s %s (exception)", method, path)
        raise
    if response.status_code >= 500:
        logger.error("[%d] %s %s", response.status_code, method, path)
    return response


@app.exception_handler(GameRuleError)
async def rule_error_handler(request, exc: GameRuleError):
    """A rejected match operation is a client error; the match keeps its previous state."""
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": exc.code})


# In-memory match registry
matches: dict[str, MatchSession] = {}


# ===== Pydantic Models =====

class CreateMatchRequest(BaseModel):
    pigeon_class: str
    human_class: str
    seed: int | None = None
    """Ruleset id from GET /rulesets. Omitted = balcony_wars.config.DEFAULT_RULESET_ID."""
    ruleset_id: str | None = None


class MoveRequest(BaseModel):
    node_id: str


class ElevatorRequest(BaseModel):
    node_id: str


class ActionRequest(BaseModel):
    kind: str
    params: dict[str, Any] | None = None


# ===== Helper Functions =====

def get_match(match_id: str) -> MatchSession:
    """Look up a match; raise 404 if not found."""
    session = matches.get(match_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return session


def evict_matches(limit: int) -> list[str]:
    """Make room for one more match: drop finished matches, then the oldest, until below limit."""
    evicted: list[str] = []
    if len(matches) < limit:
        return evicted
    for match_id in [m for m, s in matches.items() if s.phase == "game_over"]:
        del matches[match_id]
        evicted.append(match_id)
    while matches and len(matches) >= limit:
        match_id = next(iter(matches))
        del matches[match_id]
        evicted.append(match_id)
    if evicted:
        logger.info("Evicted %d match(es): %s", len(evicted), ", ".join(evicted))
    return evicted


def match_response(match_id: str, session: MatchSession, events: list[GameEvent] | None = None) -> dict:
    response = {
        "match_id": match_id,
        "state": session.state.to_dict(),
        "summary": session.summary(),
    }
    if events is not None:
        response["events"] = [e.to_dict() for e in events]
    return response


# ===== Routes =====

@app.get("/")
def root():
    return {"name": "Balcony Wars API", "matches": len(matches)}


@app.get("/rulesets")
def get_rulesets():
    """List available rulesets (id, display_name)."""
    return {"rulesets": list_rulesets(), "default": DEFAULT_RULESET_ID}


@app.get("/classes")
def get_classes(ruleset_id: str | None = None):
    """Player class catalog for a ruleset."""
    try:
        class_defs = load_class_definitions(ruleset_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"classes": {class_id: asdict(c) for class_id, c in class_defs.items()}}


@app.post("/matches")
def create_match(request: CreateMatchRequest):
    """Start a new match in the initiative phase."""
    try:
        session = MatchSession.start_match(
            request.pigeon_class,
            request.human_class,
            seed=request.seed,
            ruleset_id=request.ruleset_id,
        )
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    evict_matches(MAX_MATCHES)
    match_id = uuid.uuid4().hex[:8]
    matches[match_id] = session
    return match_response(match_id, session)


@app.get("/matches/{match_id}")
def get_match_state(match_id: str):
    return match_response(match_id, get_match(match_id))


@app.delete("/matches/{match_id}")
def delete_match(match_id: str):
    get_match(match_id)
    del matches[match_id]
    return {"deleted": match_id}


@app.post("/matches/{match_id}/initiative")
def do_roll_initiative(match_id: str):
    session = get_match(match_id)
    return match_response(match_id, session, session.roll_initiative())


@app.post("/matches/{match_id}/roll")
def do_roll_dice(match_id: str):
    session = get_match(match_id)
    return match_response(match_id, session, session.roll_dice())


@app.get("/matches/{match_id}/reachable")
def get_reachable(match_id: str):
    """Landing nodes for the current roll plus a preview of each walk, and elevator targets."""
    session = get_match(match_id)
    reachable = session.get_reachable_nodes()
    return {
        "reachable": reachable,
        "previews": {node_id: get_move_preview(session.state, node_id) for node_id in reachable},
        "elevators": get_elevator_targets(session.state),
    }


@app.post("/matches/{match_id}/move")
def do_move(match_id: str, request: MoveRequest):
    session = get_match(match_id)
    return match_response(match_id, session, session.move_to(request.node_id))


@app.post("/matches/{match_id}/elevator")
def do_ride_elevator(match_id: str, request: ElevatorRequest):
    session = get_match(match_id)
    return match_response(match_id, session, session.ride_elevator(request.node_id))


@app.post("/matches/{match_id}/action")
def do_action(match_id: str, request: ActionRequest):
    session = get_match(match_id)
    return match_response(match_id, session, session.perform_action(request.kind, request.params))


@app.post("/matches/{match_id}/end-turn")
def do_end_turn(match_id: str):
    session = get_match(match_id)
    return match_response(match_id, session, session.end_turn())


@app.get("/matches/{match_id}/available-actions")
def get_available_actions(match_id: str):
    """Action types for the current phase plus the concrete action-phase operations that would succeed."""
    session = get_match(match_id)
    summary = session.summary()
    return {
        "phase": summary["phase"],
        "active_faction": summary["active_faction"],
        "action_types": summary["available_actions"],
        "actions": session.available_actions(),
    }


@app.get("/matches/{match_id}/log")
def get_log(match_id: str, since: int = 0):
    """Match log entries from index `since` on."""
    session = get_match(match_id)
    return {"log": session.log[since:], "total": len(session.log)}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=API_HOST, port=API_PORT)
