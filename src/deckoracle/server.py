import logging
import time
from contextlib import asynccontextmanager
from datetime import date, datetime

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from deckoracle.application.progress import ProgressService
from deckoracle.application.study import StudyService
from deckoracle.consts import VERSION
from deckoracle.domain.errors import (
    CardNotInDeck,
    DeckNotFound,
    DeckOracleError,
    InvalidStatus,
    InvalidTiming,
    OutOfSequenceAnswer,
    SessionNotFound,
)
from deckoracle.domain.progress.models import ProgressQuery
from deckoracle.domain.study.models import Card, CardStatus

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("deckoracle.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"DeckOracle Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("DeckOracle Server shutting down...")


app = FastAPI(
    title="DeckOracle Server",
    description="Study-session progression and progress analytics for flashcard decks.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _services(request: Request) -> tuple[StudyService, ProgressService]:
    services = getattr(request.app.state, "services", None)
    if services is None:
        from deckoracle.application.config import resolve_config
        from deckoracle.application.factory import build_services

        services = build_services(resolve_config())
        request.app.state.services = services
    return services


def get_study_service(request: Request) -> StudyService:
    return _services(request)[0]


def get_progress_service(request: Request) -> ProgressService:
    return _services(request)[1]


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_CODES: dict[type[DeckOracleError], int] = {
    InvalidStatus: 400,
    InvalidTiming: 400,
    CardNotInDeck: 400,
    OutOfSequenceAnswer: 409,
    SessionNotFound: 404,
    DeckNotFound: 404,
}


@app.exception_handler(DeckOracleError)
async def deckoracle_error_handler(request: Request, exc: DeckOracleError):
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 500
    )
    logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Study sessions
# ---------------------------------------------------------------------------


class CardIn(BaseModel):
    card_id: str
    front: str = ""
    back: str = ""
    position: int | None = None


class CreateSessionRequest(BaseModel):
    user_id: str
    deck_id: str
    study_mode: str | None = None
    deck_name: str = ""
    cards: list[CardIn] = Field(default_factory=list)


class RecordProgressRequest(BaseModel):
    card_id: str
    # Validated by the recorder so unknown values surface as InvalidStatus.
    status: str
    response_time_ms: int | None = None
    answer_started_at: datetime | None = None
    answered_at: datetime | None = None
    user_answer: str | None = None
    is_correct: bool | None = None


@app.post("/study/sessions", status_code=201)
async def create_session(
    req: CreateSessionRequest, study: StudyService = Depends(get_study_service)
):
    """Open a session over the given ordered cards."""
    cards = [
        Card(
            card_id=c.card_id,
            front=c.front,
            back=c.back,
            position=c.position if c.position is not None else i,
        )
        for i, c in enumerate(req.cards)
    ]
    return await study.create_session(
        req.user_id, req.deck_id, cards, study_mode=req.study_mode, deck_name=req.deck_name
    )


@app.get("/study/sessions")
async def list_sessions(
    user_id: str,
    limit: int = Query(50, ge=1),
    study: StudyService = Depends(get_study_service),
):
    return await study.list_sessions(user_id, limit=limit)


@app.get("/study/sessions/{session_id}")
async def get_session(session_id: str, study: StudyService = Depends(get_study_service)):
    return await study.get_session(session_id)


@app.post("/study/sessions/{session_id}/progress", status_code=201)
async def record_progress(
    session_id: str,
    req: RecordProgressRequest,
    study: StudyService = Depends(get_study_service),
):
    """Record one card outcome for the session."""
    return await study.record_answer(
        session_id,
        req.card_id,
        req.status,
        answer_started_at=req.answer_started_at,
        answered_at=req.answered_at,
        response_time_ms=req.response_time_ms,
        user_answer=req.user_answer,
        is_correct=req.is_correct,
    )


@app.get("/study/sessions/{session_id}/progress")
async def get_session_progress(
    session_id: str, study: StudyService = Depends(get_study_service)
):
    return await study.get_session_outcomes(session_id)


@app.get("/study/sessions/{session_id}/summary")
async def get_session_summary(
    session_id: str, study: StudyService = Depends(get_study_service)
):
    return await study.summarize(session_id)


@app.post("/study/sessions/{session_id}/complete")
async def complete_session(session_id: str, study: StudyService = Depends(get_study_service)):
    """Finalize a session; repeated calls return the original completion time."""
    return await study.complete(session_id)


@app.get("/study/statuses")
async def list_statuses():
    return [s.value for s in CardStatus]


# ---------------------------------------------------------------------------
# Progress analytics
# ---------------------------------------------------------------------------


def progress_query(
    deck_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ProgressQuery:
    return ProgressQuery(deck_id=deck_id, start_date=start_date, end_date=end_date)


@app.get("/progress/overview")
async def get_progress_overview(
    user_id: str,
    query: ProgressQuery = Depends(progress_query),
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.overview(user_id, query)


@app.get("/progress/decks")
async def get_deck_progress(
    user_id: str,
    query: ProgressQuery = Depends(progress_query),
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.all_deck_progress(user_id, query)


@app.get("/progress/decks/{deck_id}")
async def get_specific_deck_progress(
    deck_id: str,
    user_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    progress: ProgressService = Depends(get_progress_service),
):
    query = ProgressQuery(deck_id=deck_id, start_date=start_date, end_date=end_date)
    return await progress.deck_progress(user_id, deck_id, query)


@app.get("/progress/cards/performance")
async def get_card_performance(
    user_id: str,
    limit: int | None = Query(None, ge=1),
    query: ProgressQuery = Depends(progress_query),
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.card_performance(user_id, query, limit=limit)


@app.get("/progress/learning-curve")
async def get_learning_curve(
    user_id: str,
    dense: bool | None = None,
    query: ProgressQuery = Depends(progress_query),
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.learning_curve(user_id, query, dense=dense)


@app.get("/progress/streaks")
async def get_study_streaks(
    user_id: str,
    deck_id: str | None = None,
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.streaks(user_id, ProgressQuery(deck_id=deck_id))


@app.get("/progress/weekly")
async def get_weekly_progress(
    user_id: str,
    query: ProgressQuery = Depends(progress_query),
    progress: ProgressService = Depends(get_progress_service),
):
    return await progress.weekly_progress(user_id, query)
