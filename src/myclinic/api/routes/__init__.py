"""API route modules."""

from .agenda import router as agenda_router
from .auth import router as auth_router
from .health import router as health_router
from .relatorios import router as relatorios_router

__all__ = ["agenda_router", "auth_router", "health_router", "relatorios_router"]
