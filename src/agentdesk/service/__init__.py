"""Service layer exports."""

from .agent import AgentService, SetupStatus, create_agent_service

__all__ = ["AgentService", "SetupStatus", "create_agent_service"]
