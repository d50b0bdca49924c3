"""
HTTP surface for polling clients and the Telegram webhook.

Polling endpoints degrade to an empty result or explicit error JSON; they
never surface a 500 for store trouble. A request without a userId is
answered as if for an unknown user rather than rejected with a 422.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..engine import RelayEngine
from ..errors import StoreUnavailableError

logger = structlog.get_logger(__name__)

DEGRADED_HEADER = "X-Relay-Degraded"
SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

router = APIRouter(tags=["signals"])


def get_engine(request: Request) -> RelayEngine:
    return request.app.state.engine


@router.get("/signals")
async def list_signals(
    response: Response,
    user_id: Optional[str] = Query(None, alias="userId"),
    engine: RelayEngine = Depends(get_engine)
) -> list[dict[str, Any]]:
    """
    Pending signals for a user, newest first.

    A store failure still answers 200 with an empty list for existing
    clients; the degraded header tells it apart from an empty inbox.
    """
    if not user_id:
        return []
    try:
        return await engine.inbox.list_pending(user_id)
    except StoreUnavailableError as e:
        engine.sink.record(e, endpoint="GET /signals", user_id=user_id)
        response.headers[DEGRADED_HEADER] = "store-unavailable"
        return []


@router.delete("/signals/{signal_id}")
async def acknowledge_signal(
    signal_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    engine: RelayEngine = Depends(get_engine)
) -> dict[str, bool]:
    """Delete a signal owned by the user."""
    if not user_id:
        return {"success": False}
    try:
        success = await engine.inbox.acknowledge(user_id, signal_id)
    except StoreUnavailableError as e:
        engine.sink.record(e, endpoint="DELETE /signals", user_id=user_id, signal_id=signal_id)
        success = False
    return {"success": success}


@router.get("/risk")
async def get_risk(
    user_id: Optional[str] = Query(None, alias="userId"),
    engine: RelayEngine = Depends(get_engine)
) -> Any:
    """Risk multiplier of a subscriber."""
    if not user_id:
        return JSONResponse(status_code=404, content={"error": "Not subscribed"})
    try:
        risk = await engine.subscriptions.get_risk(user_id)
    except StoreUnavailableError as e:
        engine.sink.record(e, endpoint="GET /risk", user_id=user_id)
        return JSONResponse(status_code=503, content={"error": "Store unavailable, try again later"})

    if risk is None:
        return JSONResponse(status_code=404, content={"error": "Not subscribed"})
    return {"risk": risk}


@router.get("/subscription")
async def get_subscription(
    user_id: Optional[str] = Query(None, alias="userId"),
    engine: RelayEngine = Depends(get_engine)
) -> Any:
    """Subscription status, with risk when subscribed."""
    if not user_id:
        return {"subscribed": False}
    try:
        risk = await engine.subscriptions.get_risk(user_id)
    except StoreUnavailableError as e:
        engine.sink.record(e, endpoint="GET /subscription", user_id=user_id)
        return JSONResponse(status_code=503, content={"error": "Store unavailable, try again later"})

    if risk is None:
        return {"subscribed": False}
    return {"subscribed": True, "risk": risk}


@router.get("/health", tags=["health"])
async def health(engine: RelayEngine = Depends(get_engine)) -> dict[str, Any]:
    return {"status": "ok", "version": __version__, **engine.get_stats()}


async def webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    secret_token: Optional[str] = Header(None, alias=SECRET_HEADER),
    engine: RelayEngine = Depends(get_engine)
) -> Any:
    """
    Telegram update intake.

    The update is acknowledged before it is processed, so a long fan-out
    never holds the request open past Telegram's delivery timeout.
    """
    expected = engine.config.webhook.secret_token
    if expected and secret_token != expected:
        logger.warning("Webhook rejected: bad secret token")
        return JSONResponse(status_code=403, content={"error": "Forbidden"})

    try:
        update = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

    background_tasks.add_task(engine.handle_update, update)
    return {"ok": True}


def create_app(engine: RelayEngine) -> FastAPI:
    """Build the FastAPI application around an engine."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await engine.close()

    app = FastAPI(
        title="Leader Signal Relay",
        description="Signal inbox polling and chat webhook intake.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.add_api_route(engine.config.webhook.path, webhook, methods=["POST"], tags=["webhook"])

    return app
