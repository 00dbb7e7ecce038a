"""
Inbound callbacks from the document server.

The server POSTs a JSON status report to the ``callbackUrl`` of every editing
session. This module authenticates those reports, routes them to the handler
registered for their status, and answers with the ``{"error": 0|1}`` body the
server expects. Detail about a failure never goes on the wire; it is logged.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from .errors import (
    AuthError,
    BadRequest,
    BridgeError,
    CorruptedDocument,
    InternalError,
    MethodNotAllowed,
    Unauthorized,
    UnknownStatus,
    ValidationError,
)
from .models import Callback, CallbackStatus
from .tokens import TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

CallbackHandler = Callable[[Callback], Union[None, Awaitable[None]]]


def parse_callback(body: bytes, authorization: Optional[str], tokens: TokenService) -> Callback:
    """
    Decode a callback body and, when token auth is on, authenticate it.

    The verified token's ``status`` and ``key`` claims take precedence over
    the same fields in the body.

    Raises:
        BadRequest: If the body is not a valid callback document
        Unauthorized: If token auth is enabled and the token is missing or invalid
    """
    try:
        callback = Callback.model_validate_json(body)
    except PydanticValidationError as exc:
        raise BadRequest(f"malformed callback body: {exc}") from exc

    token = authorization or ""
    if tokens.enabled:
        if not token:
            raise Unauthorized("missing token")
        token = token.removeprefix(BEARER_PREFIX)
        try:
            claims = tokens.verify(token)
        except AuthError as exc:
            raise Unauthorized(str(exc)) from exc

        status = claims.get("status")
        if isinstance(status, (int, float)) and not isinstance(status, bool):
            callback.status = int(status)
        key = claims.get("key")
        if isinstance(key, str):
            callback.key = key

    callback.token = token or None
    return callback


def validate_callback(callback: Callback) -> None:
    """
    Accept only callbacks that carry a document ready to be stored.

    Raises:
        CorruptedDocument: For status 7
        UnknownStatus: For anything other than 2, 6 or 7
    """
    if callback.status in (CallbackStatus.SAVE, CallbackStatus.FORCE_SAVE):
        return
    if callback.status == CallbackStatus.CORRUPTED:
        raise CorruptedDocument("document is corrupted")
    raise UnknownStatus("unknown callback status")


def get_download_url(callback: Callback) -> str:
    if not callback.url:
        raise ValidationError("empty download url")
    return callback.url


@dataclass
class CallbackHandlers:
    """Per-status handlers. Any of them may be left unset."""

    on_editing: Optional[CallbackHandler] = None
    on_save: Optional[CallbackHandler] = None
    on_save_error: Optional[CallbackHandler] = None
    on_close: Optional[CallbackHandler] = None
    on_force_save: Optional[CallbackHandler] = None
    on_corrupt: Optional[CallbackHandler] = None

    def for_status(self, status: int) -> Optional[CallbackHandler]:
        return {
            CallbackStatus.EDITING: self.on_editing,
            CallbackStatus.SAVE: self.on_save,
            CallbackStatus.SAVE_ERROR: self.on_save_error,
            CallbackStatus.CLOSED: self.on_close,
            CallbackStatus.FORCE_SAVE: self.on_force_save,
            CallbackStatus.CORRUPTED: self.on_corrupt,
        }.get(status)


@dataclass(frozen=True)
class CallbackResponse:
    status_code: int
    error: int

    def body(self) -> Dict[str, int]:
        return {"error": self.error}


OK = CallbackResponse(status_code=200, error=0)


class CallbackReceiver:
    """Authenticates callbacks and dispatches them to ``handlers``."""

    def __init__(self, tokens: TokenService, handlers: CallbackHandlers) -> None:
        self.tokens = tokens
        self.handlers = handlers

    async def dispatch(self, callback: Callback) -> None:
        handler = self.handlers.for_status(callback.status)
        if handler is None:
            logger.info(f"No handler for callback status {callback.status} (key={callback.key}); ignoring")
            return

        logger.info(f"Dispatching callback status {callback.status} for key={callback.key}")
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(callback)
            else:
                await run_in_threadpool(handler, callback)
        except Exception as exc:
            logger.exception(f"Callback handler failed for key={callback.key}")
            raise InternalError(f"handler for status {callback.status} failed: {exc}") from exc

    async def process(
        self,
        method: str,
        read_body: Callable[[], Awaitable[bytes]],
        authorization: Optional[str],
    ) -> CallbackResponse:
        try:
            if method.upper() != "POST":
                raise MethodNotAllowed(f"method {method} not allowed")

            try:
                body = await read_body()
            except (ClientDisconnect, OSError) as exc:
                raise BadRequest("could not read request body") from exc

            callback = parse_callback(body, authorization, self.tokens)
            await self.dispatch(callback)
        except BridgeError as exc:
            logger.warning(f"Rejected callback: {exc.__class__.__name__}: {exc}")
            return CallbackResponse(status_code=exc.status_code, error=1)
        return OK

    async def handle_request(self, request: Request) -> JSONResponse:
        result = await self.process(request.method, request.body, request.headers.get("Authorization"))
        return JSONResponse(status_code=result.status_code, content=result.body())

    def router(self, path: str = "/callback") -> APIRouter:
        """FastAPI router serving the receiver at ``path`` for every method, so non-POST gets a 405 body."""
        router = APIRouter()
        router.add_api_route(
            path,
            self.handle_request,
            methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            include_in_schema=False,
        )
        return router

