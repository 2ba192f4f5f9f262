"""Inquiry router: public submission plus agent and admin handling."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import (
    get_current_user,
    get_dispatcher,
    get_optional_user,
    get_tenant_db,
    get_tenant_id,
)
from ..core.security import Principal
from ..schemas.common import DeleteResponse, IdRequest, json_response
from ..schemas.inquiry import (
    CreateInquiryRequest,
    Inquiry,
    ListInquiriesRequest,
    RespondInquiryRequest,
    UpdateInquiryRequest,
)
from ..services.inquiry_service import InquiryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/inquiry", tags=["inquiry"])

PRINCIPAL_DEPENDENCY = Depends(get_current_user)
OPTIONAL_PRINCIPAL_DEPENDENCY = Depends(get_optional_user)
TENANT_DEPENDENCY = Depends(get_tenant_id)
DB_DEPENDENCY = Depends(get_tenant_db)
DISPATCHER_DEPENDENCY = Depends(get_dispatcher)


def _convert_inquiry_to_schema(inquiry_model) -> Inquiry:
    """Convert inquiry model to schema."""
    return Inquiry.model_validate(inquiry_model)


@router.post("/create", response_model=Inquiry, status_code=201)
async def create_inquiry(
    request: CreateInquiryRequest,
    principal: Optional[Principal] = OPTIONAL_PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
    dispatcher=DISPATCHER_DEPENDENCY,
) -> JSONResponse:
    """
    Submit an inquiry.

    Open to the public; the company comes from the company header or the
    companyId query parameter.
    """
    inquiry_service = InquiryService(db, tenant_id, principal, notifier=dispatcher)
    inquiry = await inquiry_service.create_inquiry(request)
    return json_response(_convert_inquiry_to_schema(inquiry), status_code=201)


@router.post("/list", response_model=list[Inquiry])
async def list_inquiries(
    request: ListInquiriesRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Admins get every inquiry; agents get those assigned to them."""
    inquiry_service = InquiryService(db, tenant_id, principal)
    inquiries = await inquiry_service.list_inquiries(request)
    return json_response([_convert_inquiry_to_schema(inquiry) for inquiry in inquiries])


@router.post("/get", response_model=Inquiry)
async def get_inquiry(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inquiry_service = InquiryService(db, tenant_id, principal)
    inquiry = await inquiry_service.get_inquiry(request.id)
    return json_response(_convert_inquiry_to_schema(inquiry))


@router.post("/update", response_model=Inquiry)
async def update_inquiry(
    request: UpdateInquiryRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Change status (forward only), priority or assignment (admin only)."""
    inquiry_service = InquiryService(db, tenant_id, principal)
    inquiry = await inquiry_service.update_inquiry(request)
    return json_response(_convert_inquiry_to_schema(inquiry))


@router.post("/respond", response_model=Inquiry)
async def respond_to_inquiry(
    request: RespondInquiryRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
    dispatcher=DISPATCHER_DEPENDENCY,
) -> JSONResponse:
    """Append a response and email it to the requester."""
    inquiry_service = InquiryService(db, tenant_id, principal, notifier=dispatcher)
    inquiry = await inquiry_service.respond(request)
    return json_response(_convert_inquiry_to_schema(inquiry))


@router.post("/delete", response_model=DeleteResponse)
async def delete_inquiry(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inquiry_service = InquiryService(db, tenant_id, principal)
    await inquiry_service.delete_inquiry(request.id)
    return json_response(DeleteResponse(id=request.id))


@router.post("/approve", response_model=Inquiry)
async def approve_inquiry(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inquiry_service = InquiryService(db, tenant_id, principal)
    inquiry = await inquiry_service.approve_inquiry(request.id)
    return json_response(_convert_inquiry_to_schema(inquiry))


@router.post("/reject", response_model=Inquiry)
async def reject_inquiry(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inquiry_service = InquiryService(db, tenant_id, principal)
    inquiry = await inquiry_service.reject_inquiry(request.id)
    return json_response(_convert_inquiry_to_schema(inquiry))
