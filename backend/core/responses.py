"""Uniform response envelope and exception handlers."""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException

from .config import settings
from .errors import AccountError

logger = logging.getLogger(__name__)


class ApiResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    data: Any = None
    message: str = "Success"
    success: bool = True


def envelope(status_code: int, data: Any = None, message: str = "Success") -> dict[str, Any]:
    body = ApiResponse(
        status_code=status_code,
        data=data,
        message=message,
        success=status_code < status.HTTP_400_BAD_REQUEST,
    )
    return jsonable_encoder(body, by_alias=True)


def api_response(status_code: int, data: Any = None, message: str = "Success") -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(status_code, data, message))


async def _account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    return api_response(exc.status_code, None, exc.message)


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = api_response(exc.status_code, None, message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return api_response(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        {"errors": jsonable_encoder(exc.errors())},
        "Invalid request payload",
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error while processing request",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    content = envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, None, "Something went wrong")
    if settings.app_env.strip().lower() == "development":
        content["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountError, _account_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
