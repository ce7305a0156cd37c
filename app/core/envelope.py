"""Uniform response envelope: ``{"success": bool, "message": str | None, "data": ...}``."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class UTF8JSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    return {"success": True, "message": message, "data": jsonable_encoder(data)}


def fail_response(status_code: int, message: str, data: Any = None) -> UTF8JSONResponse:
    return UTF8JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": jsonable_encoder(data)},
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    text = first.get("msg", "Invalid value")
    return f"{location}: {text}" if location else text


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> UTF8JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = fail_response(exc.status_code, message)
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> UTF8JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return fail_response(422, _validation_message(exc), data={"errors": jsonable_encoder(exc.errors())})


def install_envelope_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


__all__ = [
    "UTF8JSONResponse",
    "fail_response",
    "install_envelope_handlers",
    "ok",
]
