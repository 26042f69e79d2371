"""AgentDesk package exports."""

from .config import Settings, settings
from .domain import AgentOrchestrator
from .service import AgentService

__all__ = [
    "AgentOrchestrator",
    "AgentService",
    "Settings",
    "settings",
]
