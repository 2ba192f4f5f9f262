"""Agent router: company user management and performance reports."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_current_user, get_tenant_db, get_tenant_id
from ..core.security import Principal
from ..schemas.agent import (
    Agent,
    AgentPerformance,
    AgentPerformanceRequest,
    PerformanceOverview,
    RegisterAgentRequest,
    UpdateAgentRequest,
)
from ..schemas.common import DeleteResponse, IdRequest, json_response
from ..services.agent_service import AgentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/agent", tags=["agent"])

PRINCIPAL_DEPENDENCY = Depends(get_current_user)
TENANT_DEPENDENCY = Depends(get_tenant_id)
DB_DEPENDENCY = Depends(get_tenant_db)


@router.post("/register", response_model=Agent, status_code=201)
async def register_agent(
    request: RegisterAgentRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Register an agent or company admin (admin only)."""
    agent_service = AgentService(db, tenant_id, principal)
    agent = await agent_service.register_agent(request)
    return json_response(Agent.model_validate(agent), status_code=201)


@router.post("/list", response_model=list[Agent])
async def list_agents(
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    agent_service = AgentService(db, tenant_id, principal)
    agents = await agent_service.list_agents()
    return json_response([Agent.model_validate(agent) for agent in agents])


@router.post("/get", response_model=Agent)
async def get_agent(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    agent_service = AgentService(db, tenant_id, principal)
    agent = await agent_service.get_agent(request.id)
    return json_response(Agent.model_validate(agent))


@router.post("/update", response_model=Agent)
async def update_agent(
    request: UpdateAgentRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Update a profile; agents may edit their own name, phone and password."""
    agent_service = AgentService(db, tenant_id, principal)
    agent = await agent_service.update_agent(request)
    return json_response(Agent.model_validate(agent))


@router.post("/delete", response_model=DeleteResponse)
async def delete_agent(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    agent_service = AgentService(db, tenant_id, principal)
    await agent_service.delete_agent(request.id)
    return json_response(DeleteResponse(id=request.id))


@router.post("/performance", response_model=AgentPerformance)
async def agent_performance(
    request: AgentPerformanceRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Booking totals for one agent; defaults to the caller."""
    agent_service = AgentService(db, tenant_id, principal)
    performance = await agent_service.performance(request.id)
    return json_response(performance)


@router.post("/performance-overview", response_model=PerformanceOverview)
async def performance_overview(
    principal: Principal = PRINCIPAL_DEPENDENCY,
    tenant_id: str = TENANT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Company-wide booking totals per agent (admin only)."""
    agent_service = AgentService(db, tenant_id, principal)
    overview = await agent_service.performance_overview()
    return json_response(overview)
