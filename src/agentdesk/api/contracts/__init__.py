from .agents import (
    AvailableToolsResponse,
    ExecuteAgentRequest,
    ExecuteAgentResponse,
    HistoryMessage,
    ToolSummary,
)
from .chat import ChatRequest, ChatResponse
from .health import HealthResponse

__all__ = [
    "AvailableToolsResponse",
    "ChatRequest",
    "ChatResponse",
    "ExecuteAgentRequest",
    "ExecuteAgentResponse",
    "HealthResponse",
    "HistoryMessage",
    "ToolSummary",
]
