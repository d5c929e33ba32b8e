from __future__ import annotations

import contextlib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route, WebSocketRoute

from game.logic.enums import ErrorCode
from game.logic.exceptions import UnauthenticatedError
from game.logic.settings import build_game_settings
from game.rooms.manager import RoomManager
from game.rooms.reconciler import PhaseReconciler
from game.rooms.repository import RoomRepository
from game.rooms.table import GameTable
from game.server.settings import ChestsServerSettings
from game.server.types import (
    AssumeRoleRequest,
    CreateRoomRequest,
    JoinRoomRequest,
    OfferBasketRequest,
    PlaceCoinRequest,
    room_payload,
)
from game.server.websocket import room_feed_endpoint
from game.session.results import IntentResult, run_intent
from shared.auth.session_store import AnonymousSessionStore
from shared.db import Database, SqliteRecordStore
from shared.logging import bind_participant, setup_logging
from shared.store import InMemoryRecordStore

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from game.logic.state import Room
    from shared.store import RecordStore

_MAX_REQUEST_BODY_SIZE = 4096

M = TypeVar("M", bound=BaseModel)

_STATUS_BY_ERROR = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.INVALID_SETTINGS: 400,
    ErrorCode.INVALID_BASKET: 400,
    ErrorCode.STORE_UNAVAILABLE: 503,
}
_DEFAULT_ERROR_STATUS = 409


@dataclass
class Services:
    """Components shared by every request, stored on app.state.services."""

    manager: RoomManager
    table: GameTable
    reconciler: PhaseReconciler
    sessions: AnonymousSessionStore


def _error_response(error: ErrorCode, message: str) -> JSONResponse:
    status = _STATUS_BY_ERROR.get(error, _DEFAULT_ERROR_STATUS)
    return JSONResponse({"error": error.value, "message": message}, status_code=status)


def _result_response(result: IntentResult, success_status: int = 200) -> JSONResponse:
    if not result.ok:
        return _error_response(result.error or ErrorCode.CONFLICT, result.message)
    body = room_payload(result.room)
    body["role"] = None if result.role is None else result.role.value
    return JSONResponse(body, status_code=success_status)


def _bearer_identity(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    session = request.app.state.services.sessions.get_session(token.strip())
    return None if session is None else session.identity


async def _parse_body(request: Request, model: type[M]) -> M | JSONResponse:
    try:
        raw_body = await request.body()
        if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
            return JSONResponse({"error": "invalid_request", "message": "Request body too large"}, status_code=413)
        body = json.loads(raw_body) if raw_body else {}
        if not isinstance(body, dict):
            raise TypeError("request body must be a JSON object")
        return model(**body)
    except (ValueError, TypeError, UnicodeDecodeError, ValidationError):
        return JSONResponse({"error": "invalid_request", "message": "Invalid request body"}, status_code=400)


def _intent_route(
    path: str,
    intent: str,
    action: Callable[[Services, str, str | None, Any], Awaitable[Room | None]],
    request_model: type[BaseModel] | None = None,
    success_status: int = 200,
) -> Route:
    """Route running one authenticated intent and mapping its IntentResult to JSON."""

    async def endpoint(request: Request) -> JSONResponse:
        services: Services = request.app.state.services
        body: BaseModel | None = None
        if request_model is not None:
            parsed = await _parse_body(request, request_model)
            if isinstance(parsed, JSONResponse):
                return parsed
            body = parsed

        identity = _bearer_identity(request)
        room_id = request.path_params.get("room_id")
        bind_participant(room_id=room_id, identity=identity)

        async def run() -> Room | None:
            if identity is None:
                raise UnauthenticatedError
            return await action(services, identity, room_id, body)

        result = await run_intent(intent, run, identity)
        return _result_response(result, success_status)

    return Route(path, endpoint, methods=["POST"], name=intent)


# --- intent actions ---


async def _create_room(services: Services, identity: str, _room_id: str | None, body: CreateRoomRequest) -> Room:
    settings = build_game_settings(body.coin_count, body.compensation)
    room = await services.manager.create_room(identity, body.role, settings, body.display_name)
    await services.reconciler.watch(room.room_id)
    return room


async def _join_room(services: Services, identity: str, room_id: str, body: JoinRoomRequest) -> Room:
    room, _role = await services.manager.join_room(identity, room_id, body.role)
    await services.reconciler.watch(room_id)
    return room


async def _leave_room(services: Services, identity: str, room_id: str, _body: None) -> Room:
    room = await services.manager.leave_room(identity, room_id)
    if room.presenter is None and room.placer is None:
        services.reconciler.unwatch(room_id)
    return room


async def _assume_role(services: Services, identity: str, room_id: str, body: AssumeRoleRequest) -> Room:
    settings = build_game_settings(body.coin_count, body.compensation)
    room = await services.manager.assume_role(identity, room_id, body.role, settings, body.display_name)
    await services.reconciler.watch(room_id)
    return room


async def _offer_basket(services: Services, identity: str, room_id: str, body: OfferBasketRequest) -> Room:
    return await services.table.offer_basket(identity, room_id, body.basket)


async def _place_coin(services: Services, identity: str, room_id: str, body: PlaceCoinRequest) -> Room:
    return await services.table.place_coin(identity, room_id, body.coin)


async def _reset_game(services: Services, identity: str, room_id: str, _body: None) -> Room:
    return await services.table.reset_game(identity, room_id)


# --- plain endpoints ---


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def create_session(request: Request) -> JSONResponse:
    """Anonymous sign-in: issue a bearer token bound to a fresh identity."""
    session = request.app.state.services.sessions.create_session()
    return JSONResponse({"token": session.token, "identity": session.identity}, status_code=201)


async def delete_session(request: Request) -> Response:
    _scheme, _, token = request.headers.get("authorization", "").partition(" ")
    request.app.state.services.sessions.delete_session(token.strip())
    return Response(status_code=204)


async def get_room(request: Request) -> JSONResponse:
    services: Services = request.app.state.services
    room_id = request.path_params["room_id"]
    identity = _bearer_identity(request)
    result = await run_intent("get_room", lambda: services.manager.get_room(room_id), identity)
    return _result_response(result)


def _build_store(settings: ChestsServerSettings) -> tuple[RecordStore, Database | None]:
    if settings.store_backend == "sqlite":
        db = Database(settings.database_path)
        db.connect()
        return SqliteRecordStore(db, max_retries=settings.transaction_retries), db
    return InMemoryRecordStore(max_retries=settings.transaction_retries), None


def create_app(
    settings: ChestsServerSettings | None = None,
    store: RecordStore | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ChestsServerSettings()

    # When the app builds its own store, it owns the DB lifecycle.
    owned_db: Database | None = None
    if store is None:
        store, owned_db = _build_store(settings)

    repository = RoomRepository(store)
    table = GameTable(repository)
    services = Services(
        manager=RoomManager(repository),
        table=table,
        reconciler=PhaseReconciler(repository, table),
        sessions=AnonymousSessionStore(ttl_seconds=settings.session_ttl_seconds),
    )

    async def ws_endpoint(websocket: WebSocket) -> None:
        await room_feed_endpoint(websocket, services.manager)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/sessions", create_session, methods=["POST"]),
        Route("/sessions", delete_session, methods=["DELETE"]),
        _intent_route("/rooms", "create_room", _create_room, CreateRoomRequest, success_status=201),
        Route("/rooms/{room_id}", get_room, methods=["GET"]),
        _intent_route("/rooms/{room_id}/join", "join_room", _join_room, JoinRoomRequest),
        _intent_route("/rooms/{room_id}/leave", "leave_room", _leave_room),
        _intent_route("/rooms/{room_id}/assume", "assume_role", _assume_role, AssumeRoleRequest),
        _intent_route("/rooms/{room_id}/offer", "offer_basket", _offer_basket, OfferBasketRequest),
        _intent_route("/rooms/{room_id}/place", "place_coin", _place_coin, PlaceCoinRequest),
        _intent_route("/rooms/{room_id}/reset", "reset_game", _reset_game),
        WebSocketRoute("/ws/{room_id}", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        services.sessions.start_cleanup()
        yield
        await services.sessions.stop_cleanup()
        services.reconciler.close()
        if owned_db is not None:
            owned_db.close()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.settings = settings
    app.state.services = services
    app.state.database = owned_db

    logger.info("chests server ready", store_backend=settings.store_backend)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = ChestsServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
