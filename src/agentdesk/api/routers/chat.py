"""Direct chat and setup status router.

Endpoints:
- POST /ai/chat: chat with routing and provider fallback, no tools
- GET /ai/setup/status: which providers are configured and what they enable
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ...domain.domain_type import MessageRole
from ...service import AgentService, SetupStatus
from ..contracts import ChatRequest, ChatResponse
from ..deps import get_agent_service

router = APIRouter(prefix="/ai", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: Annotated[AgentService, Depends(get_agent_service)],
) -> ChatResponse:
    """Send a conversation to the routed model, falling back on failure."""
    if request.messages[-1].role != MessageRole.USER:
        raise HTTPException(status_code=400, detail="The last message must come from the user")

    result = await service.chat(
        [m.to_domain() for m in request.messages],
        model=request.model,
        max_tokens=request.max_tokens,
        temperature=request.temperature,
    )
    return ChatResponse(
        success=result.success,
        content=result.content,
        model_used=result.model_used,
        provider=result.provider,
        fallback_used=result.fallback_used,
        attempts=list(result.attempts),
        usage=result.usage,
        confidence=result.confidence,
    )


@router.get("/setup/status", response_model=SetupStatus)
async def setup_status(
    service: Annotated[AgentService, Depends(get_agent_service)],
) -> SetupStatus:
    """Provider configuration status and capability availability."""
    return service.setup_status()
