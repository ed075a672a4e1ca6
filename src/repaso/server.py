import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel

from repaso.application import factory
from repaso.application.card_service import CardService
from repaso.application.stats.aggregator import summarize_session
from repaso.application.stats.service import StudyStatsService
from repaso.consts import VERSION
from repaso.domain.cards.ports import CardRepository
from repaso.domain.errors import (
    AccessDenied,
    CardNotFound,
    CardValidationError,
    ConcurrentUpdateError,
    InvalidGrade,
    InvalidSessionLimit,
    RepasoError,
)
from repaso.interface.schemas import (
    CardOut,
    CreateCardRequest,
    DueOut,
    RecommendationOut,
    ReviewRequest,
    SessionSummaryOut,
    SessionSummaryRequest,
    StudySessionOut,
    UpdateCardRequest,
    UserStatsOut,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("repaso.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from repaso.application.config import resolve_config

    # Startup
    config = resolve_config()
    app.state.config = config
    app.state.repo = factory.get_card_repository(config)
    logger.info(f"Repaso Server v{VERSION} starting up (backend={config.backend})...")
    yield
    # Shutdown
    logger.info("Repaso Server shutting down...")


app = FastAPI(
    title="Repaso Server",
    description="Spaced-repetition scheduling for bilingual flashcards.",
    version=VERSION,
    lifespan=lifespan,
)


def get_repository(request: Request) -> CardRepository:
    return request.app.state.repo


def get_session_limits(request: Request) -> tuple[int, int]:
    config = getattr(request.app.state, "config", None)
    if config is None:
        from repaso.domain.constants import DEFAULT_SESSION_LIMIT, MAX_SESSION_SIZE

        return DEFAULT_SESSION_LIMIT, MAX_SESSION_SIZE
    return config.default_session_limit, config.max_session_limit


def get_card_service(
    request: Request, repo: CardRepository = Depends(get_repository)
) -> CardService:
    config = getattr(request.app.state, "config", None)
    if config is None:
        return CardService(repo)
    return factory.get_card_service(config, repo)


def get_stats_service(repo: CardRepository = Depends(get_repository)) -> StudyStatsService:
    return factory.get_stats_service(repo)


def _http_error(e: RepasoError) -> HTTPException:
    if isinstance(e, (InvalidGrade, InvalidSessionLimit, CardValidationError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, CardNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AccessDenied):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ConcurrentUpdateError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


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
# Cards
# ---------------------------------------------------------------------------


@app.post("/cards", response_model=CardOut, status_code=201)
async def create_card(req: CreateCardRequest, service: CardService = Depends(get_card_service)):
    try:
        card = await service.create_card(req.owner_id, req.front, req.back)
        return CardOut.model_validate(card)
    except RepasoError as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.error(f"Create card failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/users/{owner_id}/cards", response_model=list[CardOut])
async def list_cards(owner_id: str, service: CardService = Depends(get_card_service)):
    cards = await service.list_cards(owner_id)
    return [CardOut.model_validate(c) for c in cards]


@app.patch("/cards/{card_id}", response_model=CardOut)
async def update_card(
    card_id: str, req: UpdateCardRequest, service: CardService = Depends(get_card_service)
):
    try:
        card = await service.update_content(card_id, req.owner_id, front=req.front, back=req.back)
        return CardOut.model_validate(card)
    except RepasoError as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.error(f"Update card failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.delete("/cards/{card_id}", status_code=204)
async def delete_card(
    card_id: str, owner_id: str, service: CardService = Depends(get_card_service)
):
    try:
        await service.delete_card(card_id, owner_id)
        return Response(status_code=204)
    except RepasoError as e:
        raise _http_error(e) from e


@app.post("/cards/{card_id}/review", response_model=CardOut)
async def review_card(
    card_id: str, req: ReviewRequest, service: CardService = Depends(get_card_service)
):
    """
    Grade a card (0-5) and reschedule it.
    """
    logger.info(f"Review requested: card={card_id} grade={req.grade}")
    try:
        card = await service.review_card(card_id, req.owner_id, req.grade)
        return CardOut.model_validate(card)
    except RepasoError as e:
        raise _http_error(e) from e
    except Exception as e:
        logger.error(f"Review failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


# ---------------------------------------------------------------------------
# Study sessions and stats
# ---------------------------------------------------------------------------


@app.get("/users/{owner_id}/session", response_model=StudySessionOut)
async def get_study_session(
    owner_id: str,
    limit: int | None = None,
    limits: tuple[int, int] = Depends(get_session_limits),
    service: StudyStatsService = Depends(get_stats_service),
):
    """
    Build a study session. `limit` defaults to the configured session size
    and is capped at the configured maximum.
    """
    default_limit, max_limit = limits
    requested = default_limit if limit is None else limit
    try:
        if requested > max_limit:
            requested = max_limit
        session = await service.plan_session(owner_id, requested)
        return StudySessionOut.from_domain(session)
    except RepasoError as e:
        raise _http_error(e) from e


@app.get("/users/{owner_id}/due", response_model=DueOut)
async def get_due_cards(
    owner_id: str,
    limit: int | None = None,
    service: StudyStatsService = Depends(get_stats_service),
):
    try:
        due = await service.get_due(owner_id, limit)
        return DueOut.from_domain(due)
    except RepasoError as e:
        raise _http_error(e) from e


@app.get("/users/{owner_id}/stats", response_model=UserStatsOut)
async def get_user_stats(owner_id: str, service: StudyStatsService = Depends(get_stats_service)):
    stats = await service.get_user_stats(owner_id)
    return UserStatsOut.from_domain(stats)


@app.get("/users/{owner_id}/recommendations", response_model=list[RecommendationOut])
async def get_recommendations(
    owner_id: str, service: StudyStatsService = Depends(get_stats_service)
):
    recommendations = await service.get_recommendations(owner_id)
    return [
        RecommendationOut(type=r.type, priority=r.priority.value, message=r.message)
        for r in recommendations
    ]


@app.post("/sessions/summary", response_model=SessionSummaryOut)
async def complete_session(req: SessionSummaryRequest):
    """
    Summarize a finished study session from the grades given during it.
    """
    try:
        summary = summarize_session(req.grades, req.duration_seconds)
        return SessionSummaryOut.from_domain(summary)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
