"""API Routers - FastAPI endpoint handlers"""

from . import auth
from . import notifications
from . import health

__all__ = ["auth", "notifications", "health"]
