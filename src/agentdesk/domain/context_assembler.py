"""Context Assembler - Provider-Agnostic Conversation Payload.

Builds the exact message sequence sent upstream:

    1. system   persona + available tools + context ids + instructions
    2. ...      prior conversation history, verbatim and in order
    3. user     the current message
    4. user     "Tool Results:" block (only when tools ran)

The tool-results message always comes after the user message, so the model
reads the question before the evidence gathered for it.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from .domain_value import AgentConfig, ExecutionContext, Message
from .tool_registry import ToolInvocation, ToolRegistry

INSTRUCTIONS = (
    "Use tools when appropriate to provide better responses",
    "Be helpful, accurate, and professional",
    "Cite sources when using web search results",
    "Explain your reasoning when using tools",
)

TOOL_RESULTS_HEADER = "Tool Results:"
TOOL_RESULTS_FOOTER = "Please provide a comprehensive response based on the tool results above."


class ContextAssembler:
    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    def system_prompt(self, agent: AgentConfig, context: ExecutionContext) -> str:
        """Persona followed by tools, context ids and standing instructions."""
        tools = "\n".join(f"- {line}" for line in self.registry.describe(agent.tools))
        instructions = "\n".join(f"- {line}" for line in INSTRUCTIONS)
        return (
            f"{agent.system_prompt}\n\n"
            f"Available Tools:\n{tools or '- None'}\n\n"
            "Context:\n"
            f"- User ID: {context.user_id}\n"
            f"- Session ID: {context.session_id}\n"
            f"- Agent ID: {context.agent_id or agent.id}\n\n"
            f"Instructions:\n{instructions}"
        )

    @staticmethod
    def tool_results_message(invocations: Sequence[ToolInvocation]) -> Message:
        blocks = [
            f"Tool: {inv.tool_id}\nResult: {json.dumps(inv.result.as_record(), indent=2, default=str)}"
            for inv in invocations
        ]
        return Message.user(f"{TOOL_RESULTS_HEADER}\n" + "\n\n".join(blocks) + f"\n\n{TOOL_RESULTS_FOOTER}")

    def assemble(
        self,
        agent: AgentConfig,
        context: ExecutionContext,
        invocations: Sequence[ToolInvocation],
        user_message: str,
    ) -> list[Message]:
        """Assemble the Upstream Message Sequence.

        Args:
            agent: Persona and enabled tools
            context: Context *before* this turn's user message was appended
            invocations: Tools executed for this turn (may be empty)
            user_message: Current user message

        Returns:
            Ordered messages: system, history, user, optional tool results
        """
        messages = [Message.system(self.system_prompt(agent, context))]
        messages.extend(context.conversation_history)
        messages.append(Message.user(user_message))
        if invocations:
            messages.append(self.tool_results_message(invocations))
        return messages


__all__ = ["INSTRUCTIONS", "TOOL_RESULTS_FOOTER", "TOOL_RESULTS_HEADER", "ContextAssembler"]
