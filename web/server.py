"""HTTP and WebSocket API for drafts."""
import asyncio
import json
import logging
from typing import Optional, Type, TypeVar
from aiohttp import web, WSMsgType
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from database.database import Database
from database.models import utc_now
from services.draft_events import DraftEvent
from services.draft_notifier import DraftObserver
from services.draft_service import DraftService
from utils.exceptions import DraftError, InvariantViolationError, ValidationError
from web.schemas import (
    CreateDraftRequest,
    MakePickRequest,
    ReasonRequest,
    SetDraftOrderRequest,
)

logger = logging.getLogger(__name__)

Body = TypeVar("Body", bound=BaseModel)

DRAFTS = r"/api/leagues/{league_id:\d+}/drafts"
DRAFT = DRAFTS + r"/{draft_id:\d+}"

@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render draft errors as {"error": kind, "message": reason}."""
    try:
        return await handler(request)
    except InvariantViolationError as e:
        logger.critical(f"{request.method} {request.path} failed: {e.message}", exc_info=True)
        return web.json_response(
            {"error": e.kind, "message": "Internal draft state error"},
            status=e.status_code
        )
    except DraftError as e:
        return web.json_response(
            {"error": e.kind, "message": e.message},
            status=e.status_code
        )

def _dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)

async def _parse_body(request: web.Request, schema: Type[Body]) -> Body:
    data = {}
    if request.can_read_body:
        try:
            data = await request.json()
        except json.JSONDecodeError:
            raise ValidationError("Request body must be valid JSON")
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid request: {errors}")

def _ids(request: web.Request):
    league_id = int(request.match_info["league_id"])
    draft_id = request.match_info.get("draft_id")
    return league_id, int(draft_id) if draft_id is not None else None

class WebSocketObserver(DraftObserver):
    """Forwards draft events to one WebSocket client.

    Deliveries wait until the initial snapshot has been sent so the client
    always sees the snapshot first.
    """

    def __init__(self, ws: web.WebSocketResponse):
        self.ws = ws
        self.ready = asyncio.Event()

    async def deliver(self, event: DraftEvent) -> None:
        await self.ready.wait()
        if self.ws.closed:
            raise ConnectionResetError("WebSocket is closed")
        await self.ws.send_json(event.to_message())

class DraftApi:
    """Route handlers bound to a draft service."""

    def __init__(self, service: DraftService, database: Optional[Database] = None):
        self.service = service
        self.database = database
        self.started_at = utc_now()

    async def create_draft(self, request: web.Request) -> web.Response:
        league_id, _ = _ids(request)
        body = await _parse_body(request, CreateDraftRequest)
        draft = await self.service.create_draft(
            league_id,
            body.name,
            body.total_rounds,
            mode=body.mode,
            scheduled_start_time=body.scheduled_start_time,
            pick_time_limit_seconds=body.pick_time_limit_seconds,
            snake_draft=body.snake_draft,
            allow_trading=body.allow_trading
        )
        return web.json_response(_dump(draft), status=201)

    async def list_drafts(self, request: web.Request) -> web.Response:
        league_id, _ = _ids(request)
        drafts = await self.service.list_drafts(league_id)
        return web.json_response([_dump(d) for d in drafts])

    async def get_draft(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        return web.json_response(_dump(await self.service.get_draft(league_id, draft_id)))

    async def list_picks(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        picks = await self.service.list_picks(league_id, draft_id)
        return web.json_response([_dump(p) for p in picks])

    async def get_order(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        order = await self.service.get_draft_order(league_id, draft_id)
        return web.json_response([_dump(o) for o in order])

    async def set_order(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        body = await _parse_body(request, SetDraftOrderRequest)
        order = await self.service.set_draft_order(
            league_id, draft_id, body.order(), body.trades()
        )
        return web.json_response([_dump(o) for o in order])

    async def start_draft(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        return web.json_response(_dump(await self.service.start_draft(league_id, draft_id)))

    async def make_pick(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        body = await _parse_body(request, MakePickRequest)
        pick = await self.service.make_pick(league_id, draft_id, body.team_id, body.player_id)
        return web.json_response(_dump(pick), status=201)

    async def pause_draft(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        body = await _parse_body(request, ReasonRequest)
        draft = await self.service.pause_draft(league_id, draft_id, body.reason)
        return web.json_response(_dump(draft))

    async def resume_draft(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        return web.json_response(_dump(await self.service.resume_draft(league_id, draft_id)))

    async def cancel_draft(self, request: web.Request) -> web.Response:
        league_id, draft_id = _ids(request)
        body = await _parse_body(request, ReasonRequest)
        draft = await self.service.cancel_draft(league_id, draft_id, body.reason)
        return web.json_response(_dump(draft))

    async def draft_events(self, request: web.Request) -> web.WebSocketResponse:
        """Stream a draft's events, starting with a DraftState snapshot."""
        draft_id = int(request.match_info["draft_id"])
        # 404 before the upgrade if the draft does not exist
        await self.service.get_draft_by_id(draft_id)

        ws = web.WebSocketResponse(heartbeat=30)
        await ws.prepare(request)

        observer = WebSocketObserver(ws)
        subscription = self.service.notifier.subscribe(draft_id, observer)
        logger.info("WebSocket client connected", extra={'draft_id': draft_id})
        try:
            snapshot = await self.service.get_draft_by_id(draft_id)
            await ws.send_json({"type": "DraftState", "data": _dump(snapshot)})
            observer.ready.set()

            async for msg in ws:
                if msg.type == WSMsgType.TEXT and msg.data == "ping":
                    await ws.send_str("pong")
                elif msg.type == WSMsgType.ERROR:
                    logger.warning(
                        f"WebSocket closed with exception {ws.exception()}",
                        extra={'draft_id': draft_id}
                    )
        finally:
            self.service.notifier.unsubscribe(subscription)
            logger.info("WebSocket client disconnected", extra={'draft_id': draft_id})

        return ws

    async def health_check(self, request: web.Request) -> web.Response:
        """Handle health check requests."""
        db_healthy = self.database is not None and await self.database.ping()

        health_data = {
            "status": "healthy" if db_healthy else "unhealthy",
            "uptime_seconds": (utc_now() - self.started_at).total_seconds(),
            "database_healthy": db_healthy,
            "active_clocks": self.service.clock.active_count,
            "observers": self.service.notifier.observer_count(),
            "version": "1.0.0"
        }
        return web.json_response(health_data, status=200 if db_healthy else 503)

    async def ping(self, request: web.Request) -> web.Response:
        """Simple ping endpoint."""
        return web.Response(text="pong")

def create_app(service: DraftService, database: Optional[Database] = None) -> web.Application:
    """Build the aiohttp application for a draft service."""
    api = DraftApi(service, database)
    app = web.Application(middlewares=[error_middleware])

    app.router.add_get("/health", api.health_check)
    app.router.add_get("/ping", api.ping)

    app.router.add_post(DRAFTS, api.create_draft)
    app.router.add_get(DRAFTS, api.list_drafts)
    app.router.add_get(DRAFT, api.get_draft)
    app.router.add_get(DRAFT + "/picks", api.list_picks)
    app.router.add_get(DRAFT + "/order", api.get_order)
    app.router.add_post(DRAFT + "/order", api.set_order)
    app.router.add_post(DRAFT + "/start", api.start_draft)
    app.router.add_post(DRAFT + "/pick", api.make_pick)
    app.router.add_post(DRAFT + "/pause", api.pause_draft)
    app.router.add_post(DRAFT + "/resume", api.resume_draft)
    app.router.add_post(DRAFT + "/cancel", api.cancel_draft)
    app.router.add_get(r"/api/drafts/{draft_id:\d+}/events", api.draft_events)

    return app
