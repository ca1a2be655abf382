"""FastAPI web app for the Screen Battle score tracker.

Routes:
  GET  /health                       -- liveness probe
  GET  /api/users                    -- all players, points recomputed + winner bonus (persisted)
  GET  /api/user/{user_id}           -- one player, points recomputed (not persisted)
  PUT  /api/user/{user_id}           -- update player fields (points are never client-set)
  POST /api/user/{user_id}/screentime -- record minutes for a date
  POST /api/user/{user_id}/goals     -- record weekly goal completion
  GET  /api/stats                    -- current week, dates, winner and points (read-only)

NOTE: All writes are serialized through an in-process WriteQueue.
The app must run as a single worker process (no multi-worker deployment).
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

import screenbattle.config as config
from screenbattle.errors import NotFoundError, StorageError, ValidationError
from screenbattle.scoring import (
    apply_winner_bonus,
    compute_weekly_winner,
    score_users,
    user_points,
    weekly_totals,
)
from screenbattle.store import ensure_initialized, get_user, load_document
from screenbattle.validation import clean_user_patch, parse_game_date, parse_goals, parse_minutes, parse_week_key
from screenbattle.weeks import make_week_resolver, week_dates
from screenbattle.writer import WriteQueue

# ──────────────────────────────────────────────
# Logging — stdout
# ──────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
log = logging.getLogger(__name__)


def _check_single_worker():
    """Refuse to start with several workers. The write queue lives in this
    process, so writes from two workers would not be serialized."""
    workers = os.environ.get("WEB_CONCURRENCY")
    if workers and workers.isdigit() and int(workers) > 1:
        log.error(
            "WEB_CONCURRENCY=%s detected — this app MUST run with a single worker. "
            "The write queue is not shared across workers.", workers
        )
        raise SystemExit(1)


@asynccontextmanager
async def lifespan(app):
    _check_single_worker()
    ensure_initialized()
    app.state.current_week = make_week_resolver()
    app.state.writer = WriteQueue()
    app.state.writer.start()
    log.info(f"Screen Battle ready (data={config.DB_FILE}, week={app.state.current_week!r})")
    yield
    await app.state.writer.stop()


app = FastAPI(
    title="Screen Battle",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


# ──────────────────────────────────────────────
# Error responses — {"error": "..."}
# ──────────────────────────────────────────────

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse({"error": exc.message}, status_code=404)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse({"error": exc.message}, status_code=400)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    missing = [".".join(str(p) for p in e["loc"][1:]) or "body" for e in exc.errors() if e.get("type") == "missing"]
    message = f"Missing field(s): {', '.join(missing)}" if missing else "Malformed request"
    return JSONResponse({"error": message}, status_code=400)


@app.exception_handler(StorageError)
async def storage_handler(request: Request, exc: StorageError):
    log.error(f"Storage error on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def _save_failed():
    return JSONResponse({"error": "Failed to save data"}, status_code=500)


# ──────────────────────────────────────────────
# Request bodies
# ──────────────────────────────────────────────

class ScreenTimeIn(BaseModel):
    date: Any
    minutes: Any


class GoalsIn(BaseModel):
    week: Any
    goals: Any


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/users")
async def list_users(request: Request):
    doc = await run_in_threadpool(load_document)
    week = request.app.state.current_week()

    winner = compute_weekly_winner(doc, week)
    points = apply_winner_bonus(score_users(doc, week), winner)
    for user_id, p in points.items():
        doc["users"][user_id]["points"] = p

    # Points are a derived cache field; a failed save doesn't fail the listing
    result = await request.app.state.writer.enqueue(doc)
    if not result:
        log.warning(f"Could not persist recomputed points: {result.message}")
    return doc["users"]


@app.get("/api/user/{user_id}")
async def get_user_route(user_id: str, request: Request):
    doc = await run_in_threadpool(load_document)
    points = user_points(doc, user_id, request.app.state.current_week())
    user = get_user(doc, user_id)
    user["points"] = points
    return user


@app.put("/api/user/{user_id}")
async def update_user(user_id: str, request: Request, body: dict = Body(...)):
    doc = await run_in_threadpool(load_document)
    user = get_user(doc, user_id)
    patch = clean_user_patch(body)
    user.update(patch)

    result = await request.app.state.writer.enqueue(doc)
    if not result:
        return _save_failed()
    log.info(f"Updated {user_id}: {', '.join(sorted(patch)) or 'no fields'}")
    return user


@app.post("/api/user/{user_id}/screentime")
async def record_screen_time(user_id: str, body: ScreenTimeIn, request: Request):
    doc = await run_in_threadpool(load_document)
    user = get_user(doc, user_id)
    day = parse_game_date(body.date)
    minutes = parse_minutes(body.minutes)
    user.setdefault("screenTimes", {})[day] = minutes

    result = await request.app.state.writer.enqueue(doc)
    if not result:
        return _save_failed()
    log.info(f"Screen time {user_id} {day}: {minutes} min")
    return {"success": True, "message": "Screen time recorded!"}


@app.post("/api/user/{user_id}/goals")
async def record_goals(user_id: str, body: GoalsIn, request: Request):
    doc = await run_in_threadpool(load_document)
    user = get_user(doc, user_id)
    week = parse_week_key(body.week)
    goals = parse_goals(body.goals)
    if not isinstance(user.get("goalsCompleted"), dict):
        user["goalsCompleted"] = {}
    user["goalsCompleted"][week] = goals

    result = await request.app.state.writer.enqueue(doc)
    if not result:
        return _save_failed()
    log.info(f"Goals {user_id} {week}: {sum(goals)}/{len(goals)} done")
    return {"success": True, "message": "Goals updated!"}


@app.get("/api/stats")
async def stats(request: Request, week: int | None = None):
    doc = await run_in_threadpool(load_document)
    current = request.app.state.current_week()
    if week is None:
        week = current
    dates = week_dates(week)

    points = score_users(doc, week)
    return {
        "currentWeek": current,
        "week": week,
        "weekDates": dates,
        "weeklyWinner": compute_weekly_winner(doc, week),
        "totals": weekly_totals(doc, week),
        "points": points,
        **{f"{user_id}Points": p for user_id, p in points.items()},
    }
