"""Tool Dispatcher - Sequential, Failure-Contained Tool Execution."""

from __future__ import annotations

from collections.abc import Sequence

import logfire

from .domain_value import ExecutionContext
from .errors import AgentDeskError, classify_exception
from .intent import ToolSelection
from .tool_registry import ToolFailure, ToolInvocation, ToolRegistry, ToolSuccess


class ToolDispatcher:
    """Run Selected Tools One After Another.

    Guarantees:
        - Execution follows selection order; no tool starts before the
          previous one finished.
        - Unknown tool ids are skipped, so the output is never longer than
          the selection.
        - A tool that raises or returns ``success: False`` becomes a
          ToolFailure; it never aborts the remaining tools and never raises
          to the caller.
        - Each handler sees only its own validated parameters and the
          read-only context.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, selected: Sequence[ToolSelection], context: ExecutionContext) -> list[ToolInvocation]:
        invocations: list[ToolInvocation] = []
        for selection in selected:
            tool = self.registry.get(selection.tool_id)
            if tool is None:
                logfire.warn("skipping unknown tool", tool_id=selection.tool_id)
                continue

            with logfire.span("tool {tool_id}", tool_id=tool.id):
                try:
                    parameters = tool.bind_parameters(selection.parameters)
                    payload = dict(await tool.handler(parameters, context) or {})
                    if payload.get("success") is False:
                        # handler reported its own failure
                        detail = str(payload.get("error") or payload.get("message") or "tool reported failure")
                        logfire.warn("tool reported failure", tool_id=tool.id, error=detail)
                        result: ToolSuccess | ToolFailure = ToolFailure(
                            error=f"Tool execution failed: {detail}",
                            message=str(payload.get("message") or detail),
                        )
                    else:
                        payload.pop("success", None)
                        result = ToolSuccess(payload=payload)
                except Exception as exc:
                    parameters = dict(selection.parameters)
                    detail = exc.message if isinstance(exc, AgentDeskError) else str(exc) or type(exc).__name__
                    logfire.warn(
                        "tool failed",
                        tool_id=tool.id,
                        error_kind=classify_exception(exc),
                        error=detail,
                    )
                    result = ToolFailure(
                        error=f"Tool execution failed: {detail}",
                        message=detail,
                    )
            invocations.append(ToolInvocation(tool_id=tool.id, parameters=parameters, result=result))
        return invocations


__all__ = ["ToolDispatcher"]
