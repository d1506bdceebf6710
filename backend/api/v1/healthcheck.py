"""Liveness endpoint."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from core import api_response

router = APIRouter(prefix="/healthcheck", tags=["healthcheck"])


@router.get("")
async def healthcheck() -> JSONResponse:
    return api_response(status.HTTP_200_OK, "OK", "Health check passed")
