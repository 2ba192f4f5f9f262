"""Agent-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from .booking import BookingSummary
from .common import ApiModel, Email, ObjectId

ADMIN_ONLY_FIELDS = frozenset({"role", "is_active", "monthly_target", "commission_rate", "department"})


class CompanyRole(str, Enum):
    """Roles that can be granted inside a company."""
    AGENT = "agent"
    ADMIN = "admin"


class RegisterAgentRequest(ApiModel):
    """Request schema for registering an agent."""

    name: str = Field(..., min_length=2, max_length=255)
    email: Email
    password: str = Field(..., min_length=8, max_length=128)
    phone: Optional[str] = Field(None, max_length=64)
    role: CompanyRole = CompanyRole.AGENT
    monthly_target: Decimal = Field(Decimal("5000"), ge=0)
    commission_rate: Decimal = Field(Decimal("5.0"), ge=0, le=100)
    department: str = Field("sales", max_length=64)


class UpdateAgentRequest(ApiModel):
    """
    Request schema for updating an agent profile.

    Agents may change their own name, phone and password; the remaining
    fields are reserved for admins.
    """

    id: ObjectId
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[CompanyRole] = None
    is_active: Optional[bool] = None
    monthly_target: Optional[Decimal] = Field(None, ge=0)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    department: Optional[str] = Field(None, max_length=64)

    @model_validator(mode="after")
    def check_not_empty(self) -> "UpdateAgentRequest":
        if not self.model_fields_set - {"id"}:
            raise ValueError("at least one field must be provided")
        return self

    def admin_fields_set(self) -> set[str]:
        return self.model_fields_set & ADMIN_ONLY_FIELDS


class Agent(ApiModel):
    """Agent response schema. Never includes credentials."""

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: CompanyRole
    is_active: bool
    monthly_target: Decimal
    commission_rate: Decimal
    department: str
    created_at: datetime


class AgentPerformanceRequest(ApiModel):
    """Performance for one agent; defaults to the caller."""

    id: Optional[ObjectId] = None


class AgentPerformance(ApiModel):
    """Aggregates computed from an agent's bookings."""

    agent_id: str
    agent_name: Optional[str] = Field(None, description="None when the agent no longer exists")
    total_bookings: int
    total_revenue: Decimal
    monthly_bookings: int
    monthly_revenue: Decimal
    monthly_target: Optional[Decimal] = None
    target_progress: Optional[Decimal] = Field(None, description="Monthly revenue as a percentage of target")
    recent_bookings: List[BookingSummary]


class PerformanceOverview(ApiModel):
    """Company-wide performance, one entry per booking owner."""

    total_bookings: int
    total_revenue: Decimal
    monthly_bookings: int
    monthly_revenue: Decimal
    agents: List[AgentPerformance]
