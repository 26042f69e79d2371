"""API dependency wiring."""

from functools import lru_cache

from ..config import settings
from ..service import AgentService, create_agent_service


@lru_cache(maxsize=1)
def get_agent_service() -> AgentService:
    """
    Create agent service from settings (cached singleton).

    The credential snapshot is taken here, once per process. Service factory
    handles all construction logic - deps.py is just thin DI glue.
    """
    return create_agent_service(settings)
