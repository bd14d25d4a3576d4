"""API route handlers."""

from fastapi import APIRouter, Depends, HTTPException, Query

from fins_gateway.api.dependencies import get_client
from fins_gateway.core.models import (
    ErrorResponse,
    FillRequest,
    FinsResponse,
    ReadResponse,
    StatusResponse,
    WriteRequest,
)
from fins_gateway.errors import FinsDecodeError, FinsError, FinsResponseTimeout
from fins_gateway.protocol.client import FinsClient

router = APIRouter(prefix="/api")

_ERRORS = {
    400: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _require_connected(client: FinsClient) -> None:
    if not client.connected:
        raise HTTPException(status_code=503, detail="Controller not connected")


async def _call(awaitable):
    try:
        return await awaitable
    except FinsResponseTimeout as e:
        raise HTTPException(status_code=504, detail=str(e)) from None
    except FinsDecodeError as e:
        raise HTTPException(status_code=502, detail=str(e)) from None
    except FinsError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except ConnectionError as e:
        raise HTTPException(status_code=503, detail=str(e)) from None


@router.get("/memory/{address}", response_model=ReadResponse, responses=_ERRORS)
async def read_memory(
    address: str,
    count: int = Query(1, ge=1, le=999),
    client: FinsClient = Depends(get_client),
):
    """Read words from a memory area."""
    _require_connected(client)
    try:
        return await _call(client.read(address, count))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.post("/memory/{address}", response_model=FinsResponse, responses=_ERRORS)
async def write_memory(
    address: str,
    request: WriteRequest,
    client: FinsClient = Depends(get_client),
):
    """Write words to a memory area."""
    _require_connected(client)
    try:
        return await _call(client.write(address, request.values))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.post("/memory/{address}/fill", response_model=FinsResponse, responses=_ERRORS)
async def fill_memory(
    address: str,
    request: FillRequest,
    client: FinsClient = Depends(get_client),
):
    """Fill a range of words with one value."""
    _require_connected(client)
    try:
        return await _call(client.fill(address, request.value, request.count))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.post("/run", response_model=FinsResponse, responses=_ERRORS)
async def run_controller(client: FinsClient = Depends(get_client)):
    """Put the controller into RUN."""
    _require_connected(client)
    return await _call(client.run())


@router.post("/stop", response_model=FinsResponse, responses=_ERRORS)
async def stop_controller(client: FinsClient = Depends(get_client)):
    """Put the controller into STOP."""
    _require_connected(client)
    return await _call(client.stop())


@router.get("/status", response_model=StatusResponse, responses=_ERRORS)
async def controller_status(client: FinsClient = Depends(get_client)):
    """Read controller run status, mode and error flags."""
    _require_connected(client)
    return await _call(client.status())
