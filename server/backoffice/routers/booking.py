"""Booking router for booking operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_current_user, get_dispatcher, get_tenant_db, get_tenant_id
from ..core.security import Principal
from ..schemas.booking import (
    Booking,
    BookingSnapshot,
    CreateBookingRequest,
    ListBookingsRequest,
    UpdateBookingRequest,
)
from ..schemas.common import DeleteResponse, IdRequest, json_response
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
PRINCIPAL_DEPENDENCY = Depends(get_current_user)
TENANT_DEPENDENCY = Depends(get_tenant_id)
DB_DEPENDENCY = Depends(get_tenant_db)
DISPATCHER_DEPENDENCY = Depends(get_dispatcher)


def _convert_booking_to_schema(booking_model) -> Booking:
    """Convert booking model to schema."""
    return Booking.model_validate(booking_model)


@router.post("/create", response_model=Booking, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
    dispatcher=DISPATCHER_DEPENDENCY,
) -> JSONResponse:
    """
    Create a booking for the calling agent.

    The booking starts pending approval. The customer confirmation email is
    sent in the background and never delays or fails this call.
    """
    booking_service = BookingService(db, tenant_id, principal, notifier=dispatcher)
    booking = await booking_service.create_booking(request)
    return json_response(_convert_booking_to_schema(booking), status_code=201)


@router.post("/list", response_model=list[Booking])
async def list_bookings(
    request: ListBookingsRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """List all bookings in the company, newest first (admin only)."""
    booking_service = BookingService(db, tenant_id, principal)
    bookings = await booking_service.list_bookings(request)
    return json_response([_convert_booking_to_schema(booking) for booking in bookings])


@router.post("/mine", response_model=list[Booking])
async def list_my_bookings(
    request: ListBookingsRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """List the caller's own bookings, newest first."""
    booking_service = BookingService(db, tenant_id, principal)
    bookings = await booking_service.list_my_bookings(request.status)
    return json_response([_convert_booking_to_schema(booking) for booking in bookings])


@router.post("/get", response_model=Booking)
async def get_booking(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Get a booking; owner or admin."""
    booking_service = BookingService(db, tenant_id, principal)
    booking = await booking_service.get_booking(request.id)
    return json_response(_convert_booking_to_schema(booking))


@router.post("/update", response_model=Booking)
async def update_booking(
    request: UpdateBookingRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Update a booking.

    Agents may edit customer details of their own bookings; status and
    approval changes from agents are ignored.
    """
    booking_service = BookingService(db, tenant_id, principal)
    booking = await booking_service.update_booking(request)
    return json_response(_convert_booking_to_schema(booking))


@router.post("/delete", response_model=DeleteResponse)
async def delete_booking(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Delete a booking; owner or admin."""
    booking_service = BookingService(db, tenant_id, principal)
    await booking_service.delete_booking(request.id)
    return json_response(DeleteResponse(id=request.id))


@router.post("/approve", response_model=Booking)
async def approve_booking(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Approve a pending booking, confirming it (admin only)."""
    booking_service = BookingService(db, tenant_id, principal)
    booking = await booking_service.approve_booking(request.id)
    return json_response(_convert_booking_to_schema(booking))


@router.post("/reject", response_model=Booking)
async def reject_booking(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Reject a pending booking, cancelling it (admin only)."""
    booking_service = BookingService(db, tenant_id, principal)
    booking = await booking_service.reject_booking(request.id)
    return json_response(_convert_booking_to_schema(booking))


@router.post("/snapshot", response_model=BookingSnapshot)
async def booking_snapshot(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Read-only booking view for document rendering."""
    booking_service = BookingService(db, tenant_id, principal)
    snapshot = await booking_service.snapshot(request.id)

    logger.debug("Booking snapshot generated", extra={"booking_id": request.id, "tenant_id": tenant_id})
    return json_response(snapshot)
