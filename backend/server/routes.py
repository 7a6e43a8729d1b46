"""
Route registration for the chat API.

Responsibilities:
- Define HTTP endpoints
- Parse and validate request bodies
- Derive the throttle session key from the request
- Pull the gateway from app.state
- Guarantee a JSON body for every error
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from observability.logger import log_event
from orchestrator.throttle import derive_session_key
from protocol.chat import ChatRequest, InvalidRequestBody
from session.gateway import ChatGateway


CHAT_PATHS: tuple[str, ...] = ("/chat", "/api/chat")


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    async def chat(request: Request) -> JSONResponse:
        gateway: ChatGateway = request.app.state.gateway

        try:
            chat_request = ChatRequest.model_validate(await _read_json_body(request))
        except InvalidRequestBody as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except ValidationError as exc:
            return _validation_response(exc.errors(include_url=False))

        session_key = derive_session_key(
            wallet_address=chat_request.wallet_address,
            forwarded_for=request.headers.get("x-forwarded-for"),
            peer_host=request.client.host if request.client else None,
        )

        # The app-level Exception handler runs outside CORS and header middleware
        try:
            result = await gateway.handle_chat(chat_request, session_key=session_key)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return _unhandled_response(request, exc)
        return JSONResponse(status_code=result.status_code, content=result.body)

    async def chat_preflight() -> Response:
        return Response(status_code=200)

    for path in CHAT_PATHS:
        app.add_api_route(path, chat, methods=["POST"])
        app.add_api_route(path, chat_preflight, methods=["OPTIONS"])


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves the server as a JSON object with an "error" key."""
    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        return _validation_response(exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        return _unhandled_response(request, exc)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

async def _read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        raise InvalidRequestBody("Request body is required")

    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise InvalidRequestBody("Invalid JSON in request body") from exc

    if body is None:
        raise InvalidRequestBody("Request body is required")
    return body


def _unhandled_response(request: Request, exc: Exception) -> JSONResponse:
    log_event({
        "event_type": "HTTP_UNHANDLED_ERROR",
        "path": request.url.path,
        "exception": type(exc).__name__,
        "message": str(exc),
    })
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) or "Internal server error",
            "type": type(exc).__name__,
        },
    )


def _validation_response(errors: Any) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request data",
            "details": jsonable_encoder(errors),
        },
    )
