"""Role-based authorization gate applied before any state transition."""

import logging
from enum import Enum
from typing import Optional, Protocol

from .exceptions import AuthenticationError, AuthorizationError
from .security import Principal

logger = logging.getLogger(__name__)


class Rule(str, Enum):
    """Who may perform an operation."""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    OWNER_OR_ADMIN = "owner_or_admin"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Operation(str, Enum):
    """Operations guarded by the gate."""
    # Companies
    COMPANY_CREATE = "company.create"
    COMPANY_LIST = "company.list"
    COMPANY_READ = "company.read"
    COMPANY_DEACTIVATE = "company.deactivate"

    # Agents
    AGENT_REGISTER = "agent.register"
    AGENT_LIST = "agent.list"
    AGENT_READ = "agent.read"
    AGENT_UPDATE = "agent.update"
    AGENT_DELETE = "agent.delete"
    AGENT_PERFORMANCE = "agent.performance"
    AGENT_PERFORMANCE_OVERVIEW = "agent.performance_overview"

    # Bookings
    BOOKING_CREATE = "booking.create"
    BOOKING_LIST_ALL = "booking.list_all"
    BOOKING_LIST_OWN = "booking.list_own"
    BOOKING_READ = "booking.read"
    BOOKING_UPDATE = "booking.update"
    BOOKING_DELETE = "booking.delete"
    BOOKING_APPROVE = "booking.approve"
    BOOKING_REJECT = "booking.reject"

    # Inquiries
    INQUIRY_CREATE = "inquiry.create"
    INQUIRY_LIST = "inquiry.list"
    INQUIRY_READ = "inquiry.read"
    INQUIRY_UPDATE = "inquiry.update"
    INQUIRY_RESPOND = "inquiry.respond"
    INQUIRY_ASSIGN = "inquiry.assign"
    INQUIRY_DELETE = "inquiry.delete"
    INQUIRY_APPROVE = "inquiry.approve"
    INQUIRY_REJECT = "inquiry.reject"


RULES: dict[Operation, Rule] = {
    Operation.COMPANY_CREATE: Rule.SUPER_ADMIN,
    Operation.COMPANY_LIST: Rule.SUPER_ADMIN,
    Operation.COMPANY_READ: Rule.SUPER_ADMIN,
    Operation.COMPANY_DEACTIVATE: Rule.SUPER_ADMIN,

    Operation.AGENT_REGISTER: Rule.ADMIN,
    Operation.AGENT_LIST: Rule.ADMIN,
    Operation.AGENT_READ: Rule.OWNER_OR_ADMIN,
    Operation.AGENT_UPDATE: Rule.OWNER_OR_ADMIN,
    Operation.AGENT_DELETE: Rule.ADMIN,
    Operation.AGENT_PERFORMANCE: Rule.OWNER_OR_ADMIN,
    Operation.AGENT_PERFORMANCE_OVERVIEW: Rule.ADMIN,

    Operation.BOOKING_CREATE: Rule.AUTHENTICATED,
    Operation.BOOKING_LIST_ALL: Rule.ADMIN,
    Operation.BOOKING_LIST_OWN: Rule.AUTHENTICATED,
    Operation.BOOKING_READ: Rule.OWNER_OR_ADMIN,
    Operation.BOOKING_UPDATE: Rule.OWNER_OR_ADMIN,
    Operation.BOOKING_DELETE: Rule.OWNER_OR_ADMIN,
    Operation.BOOKING_APPROVE: Rule.ADMIN,
    Operation.BOOKING_REJECT: Rule.ADMIN,

    Operation.INQUIRY_CREATE: Rule.PUBLIC,
    Operation.INQUIRY_LIST: Rule.AUTHENTICATED,
    Operation.INQUIRY_READ: Rule.OWNER_OR_ADMIN,
    Operation.INQUIRY_UPDATE: Rule.OWNER_OR_ADMIN,
    Operation.INQUIRY_RESPOND: Rule.OWNER_OR_ADMIN,
    Operation.INQUIRY_ASSIGN: Rule.ADMIN,
    Operation.INQUIRY_DELETE: Rule.ADMIN,
    Operation.INQUIRY_APPROVE: Rule.ADMIN,
    Operation.INQUIRY_REJECT: Rule.ADMIN,
}


class Owned(Protocol):
    """Anything whose owner can be named by identifier."""

    @property
    def owner_id(self) -> Optional[str]: ...


class OwnedResource:
    """Minimal owned-resource wrapper for records without an owner_id attribute."""

    def __init__(self, owner_id: Optional[str]):
        self.owner_id = owner_id


def authorize(
    principal: Optional[Principal],
    operation: Operation,
    resource: Optional[Owned] = None,
) -> None:
    """
    Decide whether the principal may perform the operation.

    Returns normally when allowed.

    Raises:
        AuthenticationError: If the operation needs a principal and there is none
        AuthorizationError: If the principal lacks the role or ownership
    """
    rule = RULES[Operation(operation)]

    if rule is Rule.PUBLIC:
        return

    if principal is None:
        raise AuthenticationError()

    if rule is Rule.AUTHENTICATED:
        return

    if rule is Rule.SUPER_ADMIN:
        if principal.is_super_admin:
            return
        _deny(principal, operation)

    if principal.is_admin:
        return

    if rule is Rule.OWNER_OR_ADMIN and resource is not None:
        if resource.owner_id is not None and resource.owner_id == principal.id:
            return

    _deny(principal, operation)


def _deny(principal: Principal, operation: Operation) -> None:
    logger.info(
        "Authorization denied",
        extra={
            "principal_id": principal.id,
            "role": principal.role.value,
            "operation": operation.value,
        }
    )
    raise AuthorizationError(detail="Not authorized to perform this operation")
