"""Agent execution router - thin HTTP layer over the orchestrator."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ...domain.orchestrator import CONFIDENCE_EXHAUSTED
from ...service import AgentService
from ..contracts import (
    AvailableToolsResponse,
    ExecuteAgentRequest,
    ExecuteAgentResponse,
    HistoryMessage,
    ToolSummary,
)
from ..deps import get_agent_service

router = APIRouter(prefix="/agents", tags=["agents"])


@router.post("/execute", response_model=ExecuteAgentResponse)
async def execute_agent(
    request: ExecuteAgentRequest,
    service: Annotated[AgentService, Depends(get_agent_service)],
) -> ExecuteAgentResponse:
    """
    Run one agent turn.

    Thin orchestration layer:
    1. Validate what the schema cannot (blank message, unknown tools)
    2. Delegate the turn to the service (domain owns all decisions)
    3. Map the AgentTurn to the API contract

    Provider and tool failures never produce an HTTP error; they come back as
    a low-confidence diagnostic reply with ``success=false``.
    """
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be blank")
    if request.tools is not None:
        unknown = sorted(set(request.tools) - set(service.tools.ids()))
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown tools: {', '.join(unknown)}")

    turn = await service.execute(
        agent_id=request.agent_id,
        message=request.message,
        user_id=request.user_id,
        session_id=request.session_id,
        history=[m.to_domain() for m in request.history],
        model=request.model,
        tools=request.tools,
    )
    response = turn.response

    return ExecuteAgentResponse(
        success=response.metadata.confidence > CONFIDENCE_EXHAUSTED,
        response=response.content,
        tools_used=list(response.tools_used),
        usage=response.usage,
        metadata=response.metadata,
        history=[HistoryMessage.from_domain(m) for m in turn.context.conversation_history],
    )


@router.get("/execute", response_model=AvailableToolsResponse)
async def list_tools(
    service: Annotated[AgentService, Depends(get_agent_service)],
) -> AvailableToolsResponse:
    """Describe the endpoint and the tools an agent can use."""
    return AvailableToolsResponse(
        message="Agent execution endpoint. Use POST to execute an agent.",
        available_tools=[
            ToolSummary(id=tool.id, name=tool.name, description=tool.description)
            for tool in service.available_tools()
        ],
    )
