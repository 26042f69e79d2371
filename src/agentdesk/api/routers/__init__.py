"""API router exports"""

from .agents import router as agents_router
from .chat import router as chat_router
from .health import router as health_router

__all__ = ["agents_router", "chat_router", "health_router"]
