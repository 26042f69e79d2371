"""Tool Registry - Declared Capabilities and Their Results.

A Tool is a named, parameterized capability the orchestrator may run before
the model answers. Handlers are plain async callables that receive validated
parameters plus the read-only ExecutionContext and either return a JSON-able
payload dict or raise. Wrapping that outcome into ToolSuccess / ToolFailure
happens here, so a handler never has to know the result envelope.

Result Envelope:
    ToolResult = ToolSuccess | ToolFailure, discriminated on ``status``.
    ``as_record()`` renders the conceptual ``{"success": bool, ...}`` JSON
    that is embedded in the synthetic tool-results message.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .domain_type import ErrorKind, OutcomeStatus, ParamType, ProviderId
from .domain_value import ExecutionContext
from .errors import ToolExecutionError

ToolHandler = Callable[[dict[str, Any], ExecutionContext], Awaitable[dict[str, Any]]]


_PYTHON_TYPES: dict[ParamType, tuple[type, ...]] = {
    ParamType.STRING: (str,),
    ParamType.NUMBER: (int, float),
    ParamType.BOOLEAN: (bool,),
    ParamType.OBJECT: (dict,),
    ParamType.ARRAY: (list, tuple),
}


class ParamSpec(BaseModel):
    """Declared Tool Parameter.

    Attributes:
        name: Parameter key in the handler's parameter dict
        type: Expected JSON-ish type
        required: Missing required parameters fail the invocation
        description: Shown to operators; not sent to the model
        enum_values: Optional closed set of allowed values
        default: Applied when an optional parameter is absent
    """

    name: str
    type: ParamType = ParamType.STRING
    required: bool = False
    description: str = ""
    enum_values: tuple[Any, ...] | None = None
    default: Any = None

    model_config = ConfigDict(frozen=True)

    def accepts(self, value: Any) -> bool:
        expected = _PYTHON_TYPES[self.type]
        # bool is an int subclass; keep numbers and booleans apart
        if self.type == ParamType.NUMBER and isinstance(value, bool):
            return False
        if not isinstance(value, expected):
            return False
        return self.enum_values is None or value in self.enum_values


class ToolBilling(BaseModel):
    """Fixed per-call billing of a tool (e.g. one generated image)."""

    unit_cost: float = Field(default=0.0, ge=0.0)
    provider: ProviderId | None = None

    model_config = ConfigDict(frozen=True)


class ToolSuccess(BaseModel):
    status: Literal[OutcomeStatus.SUCCESS] = OutcomeStatus.SUCCESS
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return True

    def as_record(self) -> dict[str, Any]:
        return {"success": True, **self.payload}


class ToolFailure(BaseModel):
    """Contained tool failure; never aborts the rest of the turn."""

    status: Literal[OutcomeStatus.FAILURE] = OutcomeStatus.FAILURE
    kind: ErrorKind = ErrorKind.TOOL_EXECUTION
    error: str
    message: str

    model_config = ConfigDict(frozen=True)

    @property
    def success(self) -> bool:
        return False

    def as_record(self) -> dict[str, Any]:
        return {"success": False, "error": self.error, "message": self.message}


ToolResult = Annotated[ToolSuccess | ToolFailure, Field(discriminator="status")]


class ToolInvocation(BaseModel):
    """One executed tool: what ran, with which parameters, and how it went."""

    tool_id: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    result: ToolResult

    model_config = ConfigDict(frozen=True)


class Tool(BaseModel):
    """Named, Parameterized Capability.

    Example:
        >>> async def echo(params, ctx):
        ...     return {"echo": params["text"]}
        >>> tool = Tool(
        ...     id="echo",
        ...     name="Echo",
        ...     description="Repeat text back",
        ...     parameters=(ParamSpec(name="text", required=True),),
        ...     handler=echo,
        ... )
    """

    id: str
    name: str
    description: str
    parameters: tuple[ParamSpec, ...] = ()
    handler: ToolHandler
    billing: ToolBilling = Field(default_factory=ToolBilling)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def bind_parameters(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Validate Raw Parameters Against Declared Specs.

        Unknown keys are dropped, absent optional parameters take their
        default, and absent required parameters or mistyped values fail.

        Raises:
            ToolExecutionError: Missing required parameter or invalid value
        """
        bound: dict[str, Any] = {}
        for param in self.parameters:
            value = raw.get(param.name)
            if value is None or value == "":
                if param.required:
                    raise ToolExecutionError(self.id, f"Missing required parameter '{param.name}'")
                if param.default is not None:
                    bound[param.name] = param.default
                continue
            if not param.accepts(value):
                raise ToolExecutionError(self.id, f"Invalid value for parameter '{param.name}': expected {param.type}")
            bound[param.name] = value
        return bound


class ToolRegistry:
    """Ordered Catalog of Tools.

    Declaration order is preserved and is the order in which the intent
    classifier reports selections. Registration happens at startup; after
    that the registry is shared read-only between turns.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.id in self._tools:
            raise ValueError(f"Tool '{tool.id}' is already registered")
        self._tools[tool.id] = tool

    def get(self, tool_id: str) -> Tool | None:
        return self._tools.get(tool_id)

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def ids(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def describe(self, tool_ids: Iterable[str]) -> list[str]:
        """Render ``name: description`` lines for known, enabled tools."""
        wanted = set(tool_ids)
        return [f"{tool.name}: {tool.description}" for tool in self._tools.values() if tool.id in wanted]

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)


__all__ = [
    "ParamSpec",
    "Tool",
    "ToolBilling",
    "ToolFailure",
    "ToolHandler",
    "ToolInvocation",
    "ToolRegistry",
    "ToolResult",
    "ToolSuccess",
]
