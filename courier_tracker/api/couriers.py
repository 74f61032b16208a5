"""
Order and courier tracking API.

POST /order creates a simulated courier for a delivery; GET /couriers/{id}
is polled by the tracking page for its live position.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from courier_tracker.exceptions import (
    CourierNotFound,
    DirectionsError,
    EmptyRoute,
    GeocodingError,
    InvalidDuration,
    InvalidRouteData,
)
from courier_tracker.models.tracking import (
    CourierResponse,
    ErrorResponse,
    OrderRequest,
    OrderResponse,
)
from courier_tracker.services.order_service import (
    OrderService,
    build_courier_response,
    build_order_response,
)

logger = logging.getLogger(__name__)

ORDER_PATH = "/order"
MISSING_ADDRESS_ERROR = "Missing from or to address"

router = APIRouter(tags=["couriers"])


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


@router.post(
    ORDER_PATH,
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_order(
    payload: OrderRequest,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    from_address = (payload.from_address or "").strip()
    to_address = (payload.to_address or "").strip()
    if not from_address or not to_address:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_ADDRESS_ERROR)

    try:
        record = await service.create_order(from_address, to_address)
    except GeocodingError as exc:
        logger.warning(f"[Orders] Geocoding failed: {exc}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not geocode addresses") from exc
    except InvalidRouteData as exc:
        logger.warning(f"[Orders] Invalid route data: {exc}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid route data: {exc}") from exc
    except (DirectionsError, InvalidDuration) as exc:
        logger.error(f"[Orders] Error creating order: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create order"
        ) from exc

    return build_order_response(record)


@router.get(
    "/couriers/{courier_id}",
    response_model=CourierResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_courier(
    courier_id: str,
    service: OrderService = Depends(get_order_service),
) -> CourierResponse:
    try:
        record, snapshot = service.track(courier_id)
    except CourierNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found") from exc
    except (EmptyRoute, InvalidDuration) as exc:
        logger.error(f"[Orders] Could not simulate courier {courier_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch courier data"
        ) from exc

    return build_courier_response(record, snapshot)
