"""Pydantic schemas for request/response validation."""

from .agent import *  # noqa: F403
from .auth import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .company import *  # noqa: F403
from .health import *  # noqa: F403
from .inquiry import *  # noqa: F403
