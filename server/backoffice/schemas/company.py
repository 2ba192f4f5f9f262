"""Company-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, Email


class CreateCompanyRequest(ApiModel):
    """Request schema for provisioning a company and its first admin."""

    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    primary_color: str = Field("#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")
    contact_email: Optional[Email] = None
    contact_phone: Optional[str] = Field(None, max_length=64)
    contact_address: Optional[str] = Field(None, max_length=1000)
    storage_uri: Optional[str] = Field(
        None,
        max_length=512,
        description="Storage URI for the company database; defaults to the configured one"
    )
    admin_name: str = Field(..., min_length=2, max_length=255)
    admin_email: Email
    admin_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("must be at least 2 characters")
        return value


class Company(ApiModel):
    """Company response schema. The storage URI stays server-side."""

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    primary_color: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_address: Optional[str] = None
    db_name: str
    is_active: bool
    created_at: datetime


class CompanyCreated(ApiModel):
    """A provisioned company and its first admin."""

    company: Company
    admin_id: str
    admin_email: str
