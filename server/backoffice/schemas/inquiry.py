"""Inquiry-related Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from ..models.states import ApprovalStatus, InquiryPriority, InquiryStatus
from .common import ApiModel, Email, ObjectId


class CreateInquiryRequest(ApiModel):
    """Request schema for submitting an inquiry. No login required."""

    name: str = Field(..., min_length=2, max_length=255)
    email: Email
    phone: Optional[str] = Field(None, max_length=64)
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)
    priority: InquiryPriority = InquiryPriority.MEDIUM
    related_booking_id: Optional[ObjectId] = None

    @field_validator("name", "subject", "message")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ListInquiriesRequest(ApiModel):
    """Filters for listing inquiries."""

    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None


class UpdateInquiryRequest(ApiModel):
    """Request schema for updating an inquiry; assignment is admin-only."""

    id: ObjectId
    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None
    assigned_agent_id: Optional[ObjectId] = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "UpdateInquiryRequest":
        if self.status is None and self.priority is None and self.assigned_agent_id is None:
            raise ValueError("at least one field must be provided")
        return self


class RespondInquiryRequest(ApiModel):
    """Request schema for answering an inquiry."""

    id: ObjectId
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class InquiryReply(ApiModel):
    """One response in an inquiry's thread."""

    sequence: int
    responder_id: str
    message: str
    created_at: datetime


class Inquiry(ApiModel):
    """Inquiry response schema."""

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    priority: InquiryPriority
    status: InquiryStatus
    approval_status: ApprovalStatus
    assigned_agent_id: Optional[str] = None
    related_booking_id: Optional[str] = None
    responses: List[InquiryReply] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
