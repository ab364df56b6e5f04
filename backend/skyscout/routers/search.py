"""Search router — smart flight search (flights + AI recommendations) and raw search."""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from skyscout.errors import ConfigurationError, InvalidInputError
from skyscout.services.flight_search_service import FlightSearchService
from skyscout.services.smart_search import SmartSearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_search_service(request: Request) -> FlightSearchService:
    service = getattr(request.app.state, "flight_search", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Flight search is not configured")
    return service


def get_smart_search(request: Request) -> SmartSearchService:
    service = getattr(request.app.state, "smart_search", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Smart search is not configured")
    return service


def _status_for(envelope) -> int:
    if envelope.success:
        return 200
    if envelope.error and envelope.error.code == "INVALID_INPUT":
        return 422
    return 502


@router.post("/flights")
async def smart_flight_search(
    payload: dict = Body(...),
    user_id: str = Query("anonymous", description="Caller id forwarded to the advisor"),
    smart_search: SmartSearchService = Depends(get_smart_search),
):
    """Search all airport combinations and return flights with AI recommendations."""
    try:
        envelope = await smart_search.run(payload, user_id=user_id)
    except ConfigurationError as e:
        logger.error(f"Smart search used before configuration: {e}")
        raise HTTPException(status_code=503, detail=e.message)

    return JSONResponse(status_code=_status_for(envelope), content=envelope.to_wire())


@router.post("/flights/raw")
async def raw_flight_search(
    payload: dict = Body(...),
    search_service: FlightSearchService = Depends(get_search_service),
):
    """Search and rank flights without the recommendation step."""
    try:
        result = await search_service.search(payload)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=e.message)

    return result.model_dump(mode="json", by_alias=True, exclude_none=True)
