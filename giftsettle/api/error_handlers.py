"""Exception handlers giving every failure the ``{"error": ...}`` body shape."""

from http import HTTPStatus
from typing import Any, Dict, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from giftsettle.errors import SettlementError


def _error_payload(code: str, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message, "code": code}
    if details:
        payload["details"] = jsonable_encoder(details)
    return payload


async def handle_settlement_error(_: Request, exc: SettlementError) -> JSONResponse:
    return JSONResponse(
        status_code=int(exc.status_code),
        content=_error_payload(exc.code, exc.message, exc.details),
    )


async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a 400, like the platform's own handlers."""
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content=_error_payload(
            "INVALID_REQUEST",
            "Invalid JSON body",
            {"errors": exc.errors()},
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SettlementError, cast(Any, handle_settlement_error))
    app.add_exception_handler(RequestValidationError, cast(Any, handle_validation_error))
