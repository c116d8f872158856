"""Pydantic schemas for request/response validation."""

from .admin import *  # noqa: F403
from .auth import *  # noqa: F403
from .availability import *  # noqa: F403
from .booking import *  # noqa: F403
from .checkout import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .tour import *  # noqa: F403
