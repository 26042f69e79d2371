"""
Tests for upstream message assembly.

These tests demonstrate:
- Testing message ordering (system, history, user, tool results)
- Testing the system prompt sections
- Testing the tool-results block content
"""

import json

from agentdesk.domain.context_assembler import TOOL_RESULTS_FOOTER, TOOL_RESULTS_HEADER, ContextAssembler
from agentdesk.domain.domain_type import MessageRole
from agentdesk.domain.domain_value import Message
from agentdesk.domain.tool_registry import ToolFailure, ToolInvocation, ToolSuccess


def test_assemble_without_tools(tool_registry, agent, context):
    """Demonstrates: No tool results message when nothing ran."""
    history = context.append_message(Message.user("earlier")).append_message(Message.assistant("reply"))

    messages = ContextAssembler(tool_registry).assemble(agent, history, [], "Hello")

    assert [m.role for m in messages] == [
        MessageRole.SYSTEM,
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.USER,
    ]
    assert messages[-1].content == "Hello"


def test_tool_results_come_after_user_message(tool_registry, agent, context):
    """
    Demonstrates: The model reads the question before the evidence.
    """
    invocation = ToolInvocation(
        tool_id="web_search",
        parameters={"query": "AI"},
        result=ToolSuccess(payload={"results": ["r1"]}),
    )

    messages = ContextAssembler(tool_registry).assemble(agent, context, [invocation], "search AI")

    assert messages[-2].content == "search AI"
    assert messages[-1].role == MessageRole.USER
    assert messages[-1].content.startswith(TOOL_RESULTS_HEADER)
    assert messages[-1].content.endswith(TOOL_RESULTS_FOOTER)


def test_tool_results_embed_json_records(tool_registry):
    """Demonstrates: Successes and failures are rendered the same way."""
    invocations = [
        ToolInvocation(tool_id="web_search", result=ToolSuccess(payload={"n": 1})),
        ToolInvocation(tool_id="generate_image", result=ToolFailure(error="Tool execution failed: x", message="x")),
    ]

    content = ContextAssembler.tool_results_message(invocations).content

    assert "Tool: web_search\nResult: " + json.dumps({"success": True, "n": 1}, indent=2) in content
    assert "Tool: generate_image" in content
    assert '"success": false' in content


def test_system_prompt_sections(tool_registry, agent, context):
    """Demonstrates: Persona, enabled tools, context ids and instructions."""
    prompt = ContextAssembler(tool_registry).system_prompt(agent, context)

    assert prompt.startswith("You are a research assistant.")
    assert "- Web Search: Search the internet for current information" in prompt
    # generate_image is registered but not enabled for this agent
    assert "Generate Image" not in prompt
    assert "- User ID: user-1" in prompt
    assert "- Session ID: session-1" in prompt
    assert "Instructions:" in prompt


def test_system_prompt_without_tools(tool_registry, agent, context):
    prompt = ContextAssembler(tool_registry).system_prompt(agent.model_copy(update={"tools": ()}), context)

    assert "Available Tools:\n- None" in prompt
