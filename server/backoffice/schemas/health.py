"""Health-related Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: HealthStatus = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field("1.0.0", description="API version")


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str = Field(..., description="'ready' or 'degraded'")
    service: str = Field(..., description="Service name")
    checks: Dict[str, str] = Field(..., description="Result of each dependency check")
    tenant_connections: int = Field(0, description="Company databases currently open")
