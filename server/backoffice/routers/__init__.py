"""FastAPI routers package."""

from .agent import router as agent_router
from .auth import router as auth_router
from .booking import router as booking_router
from .company import router as company_router
from .health import router as health_router
from .inquiry import router as inquiry_router
from .metrics import router as metrics_router

__all__ = [
    "agent_router",
    "auth_router",
    "booking_router",
    "company_router",
    "health_router",
    "inquiry_router",
    "metrics_router",
]
