"""Built-in Tools - Capabilities the Orchestrator Runs Before the Model Answers.

Seven tools ship by default. Each handler receives validated parameters plus
the read-only ExecutionContext and returns a JSON-able payload dict, or raises.
The dispatcher wraps either outcome into the ToolResult envelope, so handlers
never build ``{"success": ...}`` themselves.

Upstream Services:
    web_search       Tavily (AI-optimized search, summaries plus sources)
    generate_image   OpenAI DALL-E 3 via the openai SDK
    generate_video   Runway image-to-video REST API
    generate_music   Replicate predictions (meta/musicgen)
    send_email       Resend REST API
    code_interpreter local AST sandbox (no network, no imports)
    analyze_data     local summary statistics

Credentials:
    Read from the ProviderRegistry snapshot at call time. A missing credential
    raises ToolExecutionError, which the dispatcher records as a ToolFailure;
    it never aborts the turn.
"""

from __future__ import annotations

import ast
import math
import operator
import statistics
from typing import Any

import httpx

from .domain_type import ParamType, ProviderId, ToolId
from .domain_value import ExecutionContext
from .errors import ToolExecutionError
from .provider_registry import ProviderRegistry
from .tool_registry import ParamSpec, Tool, ToolBilling, ToolRegistry

RUNWAY_VIDEO_URL = "https://api.runwayml.com/v1/image_to_video"
REPLICATE_MUSIC_URL = "https://api.replicate.com/v1/models/meta/musicgen/predictions"
RESEND_EMAIL_URL = "https://api.resend.com/emails"
DEFAULT_EMAIL_SENDER = "AgentDesk <noreply@agentdesk.dev>"

DALLE_IMAGE_COST = 0.04


# =============================================================================
# CODE SANDBOX
# =============================================================================

_OPERATORS: dict[type, Any] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Pow: operator.pow,
    ast.Mod: operator.mod,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_COMPARISONS: dict[type, Any] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

_SAFE_FUNCTIONS: dict[str, Any] = {
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "sum": sum,
    "len": len,
    "range": range,
    "sorted": sorted,
    "list": list,
    "str": str,
    "int": int,
    "float": float,
    "sqrt": math.sqrt,
    "factorial": math.factorial,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "mean": statistics.fmean,
    "median": statistics.median,
    "pi": math.pi,
    "e": math.e,
}

MAX_RANGE = 10_000
MAX_SEQUENCE = 10_000
MAX_INT_BITS = 13_000
MAX_FACTORIAL = 1_000


def _check_size(value: Any) -> Any:
    """Reject results too large to keep evaluating cheaply."""
    if isinstance(value, int) and not isinstance(value, bool) and value.bit_length() > MAX_INT_BITS:
        raise ValueError(f"Integer results limited to {MAX_INT_BITS} bits")
    if isinstance(value, (str, list, tuple)) and len(value) > MAX_SEQUENCE:
        raise ValueError(f"Sequences limited to {MAX_SEQUENCE} items")
    return value


def _apply_binop(op: type, left: Any, right: Any) -> Any:
    # pow and repetition are checked up front; their cost is the size of the result
    if op is ast.Pow and isinstance(left, int) and isinstance(right, int) and right > 0 and abs(left) > 1:
        if right * math.log2(abs(left)) > MAX_INT_BITS:
            raise ValueError(f"Integer results limited to {MAX_INT_BITS} bits")
    if op is ast.Mult:
        for seq, count in ((left, right), (right, left)):
            if isinstance(seq, (str, list, tuple)) and isinstance(count, int) and len(seq) * count > MAX_SEQUENCE:
                raise ValueError(f"Sequences limited to {MAX_SEQUENCE} items")
    return _check_size(_OPERATORS[op](left, right))


class SandboxResult:
    """Output of one sandboxed program run."""

    def __init__(self, output: list[str], value: Any, variables: dict[str, Any]) -> None:
        self.output = output
        self.value = value
        self.variables = variables


def run_sandboxed(code: str) -> SandboxResult:
    """Evaluate a Small Python Program Without eval() or exec().

    The source is parsed to an AST and walked node by node; only whitelisted
    nodes are evaluated. Supported: numeric/string literals, lists and tuples,
    arithmetic and comparisons, assignment to plain names, calls to a fixed
    set of math/builtin functions, and ``print``. Attribute access, imports,
    loops, comprehensions and function definitions are rejected. Integer
    size, sequence length, ``range`` and ``factorial`` are bounded so a single
    program cannot hold the event loop.

    Args:
        code: Python source (one or more statements)

    Returns:
        SandboxResult with printed lines, the value of the last expression
        statement (or None) and the final variable bindings

    Raises:
        ValueError: Unsupported construct or disallowed name
        SyntaxError: Source does not parse

    Example:
        >>> result = run_sandboxed("x = 6\\nfactorial(x) / 2")
        >>> result.value
        360.0
    """
    tree = ast.parse(code, mode="exec")
    variables: dict[str, Any] = {}
    output: list[str] = []

    def eval_expr(node: ast.expr) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, (ast.List, ast.Tuple)):
            items = [eval_expr(elt) for elt in node.elts]
            return items if isinstance(node, ast.List) else tuple(items)
        if isinstance(node, ast.BinOp):
            if type(node.op) not in _OPERATORS:
                raise ValueError(f"Operator {type(node.op).__name__} not allowed")
            return _apply_binop(type(node.op), eval_expr(node.left), eval_expr(node.right))
        if isinstance(node, ast.UnaryOp):
            op_func = _OPERATORS.get(type(node.op))
            if op_func is None:
                raise ValueError(f"Operator {type(node.op).__name__} not allowed")
            return op_func(eval_expr(node.operand))
        if isinstance(node, ast.Compare):
            left = eval_expr(node.left)
            for op, comparator in zip(node.ops, node.comparators, strict=True):
                cmp_func = _COMPARISONS.get(type(op))
                if cmp_func is None:
                    raise ValueError(f"Comparison {type(op).__name__} not allowed")
                right = eval_expr(comparator)
                if not cmp_func(left, right):
                    return False
                left = right
            return True
        if isinstance(node, ast.Call):
            # Only bare names; attribute access would reach object internals
            if not isinstance(node.func, ast.Name):
                raise ValueError("Only named functions allowed")
            if node.keywords:
                raise ValueError("Keyword arguments not allowed")
            args = [eval_expr(arg) for arg in node.args]
            if node.func.id == "print":
                output.append(" ".join(str(a) for a in args))
                return None
            func = _SAFE_FUNCTIONS.get(node.func.id)
            if func is None or not callable(func):
                raise ValueError(f"Function {node.func.id} not allowed")
            if func is math.factorial and any(isinstance(a, int) and a > MAX_FACTORIAL for a in args):
                raise ValueError(f"factorial() limited to {MAX_FACTORIAL}")
            if func is range and any(isinstance(a, int) and abs(a) > MAX_RANGE for a in args):
                raise ValueError(f"range() limited to {MAX_RANGE} items")
            result = func(*args)
            return _check_size(list(result) if isinstance(result, range) else result)
        if isinstance(node, ast.Name):
            if node.id in variables:
                return variables[node.id]
            if node.id in _SAFE_FUNCTIONS:
                return _SAFE_FUNCTIONS[node.id]
            raise ValueError(f"Name {node.id} not allowed")
        raise ValueError(f"Unsupported operation: {type(node).__name__}")

    value: Any = None
    for statement in tree.body:
        if isinstance(statement, ast.Expr):
            value = eval_expr(statement.value)
        elif isinstance(statement, ast.Assign):
            if len(statement.targets) != 1 or not isinstance(statement.targets[0], ast.Name):
                raise ValueError("Only simple assignments allowed")
            variables[statement.targets[0].id] = eval_expr(statement.value)
            value = None
        else:
            raise ValueError(f"Unsupported statement: {type(statement).__name__}")

    return SandboxResult(output=output, value=value, variables=variables)


# =============================================================================
# DATA ANALYSIS
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numeric_columns(data: dict[str, Any]) -> dict[str, list[float]]:
    """Extract numeric series from the accepted data shapes.

    Shapes:
        {"values": [1, 2, 3]}               one series per numeric list
        {"records": [{"a": 1}, {"a": 2}]}   one series per numeric key
        {"a": 1, "b": 2}                    scalars collapse into "values"
    """
    columns: dict[str, list[float]] = {}
    scalars: list[float] = []
    for key, value in data.items():
        if _is_number(value):
            scalars.append(float(value))
        elif isinstance(value, list) and value and all(_is_number(v) for v in value):
            columns[key] = [float(v) for v in value]
        elif isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
            for record in value:
                for field, cell in record.items():
                    if _is_number(cell):
                        columns.setdefault(field, []).append(float(cell))
    if scalars and not columns:
        columns["values"] = scalars
    return columns


def _record_count(data: dict[str, Any]) -> int:
    lists = [v for v in data.values() if isinstance(v, list)]
    if len(lists) == 1:
        return len(lists[0])
    return len(data)


def summarize(data: dict[str, Any], analysis_type: str = "summary") -> dict[str, Any]:
    """Summary Statistics and Plain-Language Insights for Numeric Data.

    Args:
        data: Dict in one of the shapes accepted by _numeric_columns
        analysis_type: "summary" or "trend"

    Returns:
        Payload with total_records, per-column statistics and insights
    """
    columns = _numeric_columns(data)
    stats: dict[str, dict[str, float]] = {}
    insights: list[str] = []

    for name, series in columns.items():
        column = {
            "count": len(series),
            "mean": statistics.fmean(series),
            "median": statistics.median(series),
            "min": min(series),
            "max": max(series),
            "stdev": statistics.stdev(series) if len(series) > 1 else 0.0,
        }
        stats[name] = column
        insights.append(f"{name}: mean {column['mean']:.4g} over {len(series)} values (range {column['min']:.4g} to {column['max']:.4g})")
        if analysis_type == "trend" and len(series) > 1:
            direction = "increasing" if series[-1] > series[0] else "decreasing" if series[-1] < series[0] else "flat"
            insights.append(f"{name}: {direction} from {series[0]:.4g} to {series[-1]:.4g}")

    if not columns:
        insights.append("No numeric values found to analyze")

    return {
        "summary": "Data analysis completed",
        "total_records": _record_count(data),
        "analysis_type": analysis_type,
        "statistics": stats,
        "insights": insights,
    }


# =============================================================================
# TOOLKIT
# =============================================================================


class BuiltinToolkit:
    """Handlers for the Built-in Tools, Bound to a Credential Snapshot.

    Each upstream call opens a fresh ``httpx.AsyncClient`` with the toolkit's
    timeout; nothing is pooled between turns.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        timeout: float = 60.0,
        email_sender: str = DEFAULT_EMAIL_SENDER,
    ) -> None:
        self.providers = providers
        self.timeout = timeout
        self.email_sender = email_sender

    def _require(self, provider_id: ProviderId, tool_id: ToolId) -> str:
        credential = self.providers.credential(provider_id)
        if credential is None:
            env = self.providers.get(provider_id).credential_env
            raise ToolExecutionError(tool_id, f"{env} is not configured")
        return credential

    async def web_search(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        """Search the Web for Current Information.

        Uses Tavily's LLM-oriented search: an AI-written answer plus the top
        sources with short snippets, trimmed to keep the prompt small.
        """
        from tavily import AsyncTavilyClient

        client = AsyncTavilyClient(api_key=self._require(ProviderId.TAVILY, ToolId.WEB_SEARCH))
        response = await client.search(
            query=params["query"],
            max_results=int(params.get("max_results", 5)),
            search_depth="basic",
            include_answer=True,
            include_raw_content=False,
        )
        results = [
            {
                "title": item.get("title", "Untitled"),
                "url": item.get("url", ""),
                "snippet": item.get("content", "")[:200],
            }
            for item in (response or {}).get("results", [])
        ]
        return {
            "query": params["query"],
            "answer": (response or {}).get("answer"),
            "results": results,
            "source": "tavily",
        }

    async def generate_image(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=self._require(ProviderId.OPENAI, ToolId.GENERATE_IMAGE), timeout=self.timeout)
        response = await client.images.generate(
            model="dall-e-3",
            prompt=params["prompt"],
            size=params.get("size", "1024x1024"),
            style=params.get("style", "vivid"),
            quality="standard",
            n=1,
        )
        return {
            "images": [image.url for image in response.data or []],
            "prompt": params["prompt"],
            "source": "dall-e-3",
        }

    async def generate_video(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        api_key = self._require(ProviderId.RUNWAY, ToolId.GENERATE_VIDEO)
        body = {"prompt": params["prompt"], "duration": 4}
        if params.get("image_url"):
            body["image_url"] = params["image_url"]
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                RUNWAY_VIDEO_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                json=body,
            )
            response.raise_for_status()
        return {"video": response.json(), "prompt": params["prompt"], "source": "runway"}

    async def generate_music(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        api_key = self._require(ProviderId.REPLICATE, ToolId.GENERATE_MUSIC)
        prompt = params["prompt"]
        if params.get("genre"):
            prompt = f"{params['genre']} {prompt}"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                REPLICATE_MUSIC_URL,
                headers={"Authorization": f"Bearer {api_key}", "Prefer": "wait"},
                json={"input": {"prompt": prompt, "duration": int(params.get("duration", 30))}},
            )
            response.raise_for_status()
        return {"music": response.json(), "prompt": params["prompt"], "source": "replicate-musicgen"}

    async def send_email(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        """Send an Email Through Resend.

        Content is sent as HTML. The recipient must have been stated in the
        message; the dispatcher fails the invocation when ``to`` is missing.
        """
        api_key = self._require(ProviderId.RESEND, ToolId.SEND_EMAIL)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                RESEND_EMAIL_URL,
                headers={"Authorization": f"Bearer {api_key}"},
                json={
                    "from": params.get("sender") or self.email_sender,
                    "to": [params["to"]],
                    "subject": params["subject"],
                    "html": params["content"],
                },
            )
            response.raise_for_status()
        return {"email_id": response.json().get("id"), "message": "Email sent successfully", "source": "resend"}

    async def code_interpreter(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        language = params.get("language", "python")
        if language != "python":
            raise ToolExecutionError(ToolId.CODE_INTERPRETER, f"Unsupported language '{language}'")
        try:
            result = run_sandboxed(params["code"])
            rendered = None if result.value is None else repr(result.value)
            variables = {k: repr(v) for k, v in result.variables.items()}
        except (SyntaxError, ValueError, TypeError, ArithmeticError) as exc:
            raise ToolExecutionError(ToolId.CODE_INTERPRETER, f"Code execution failed: {exc}") from exc
        return {
            "output": "\n".join(result.output),
            "result": rendered,
            "variables": variables,
            "language": language,
            "source": "code_interpreter",
        }

    async def analyze_data(self, params: dict[str, Any], ctx: ExecutionContext) -> dict[str, Any]:
        payload = summarize(params["data"], params.get("analysis_type", "summary"))
        return {**payload, "source": "data_analyzer"}

    def tools(self) -> list[Tool]:
        """Tool definitions in declaration order."""
        return [
            Tool(
                id=ToolId.WEB_SEARCH,
                name="Web Search",
                description="Search the internet for current information",
                parameters=(
                    ParamSpec(name="query", required=True, description="Search query"),
                    ParamSpec(name="max_results", type=ParamType.NUMBER, default=5, description="Maximum results to return"),
                ),
                handler=self.web_search,
            ),
            Tool(
                id=ToolId.GENERATE_IMAGE,
                name="Generate Image",
                description="Create images using AI (DALL-E 3)",
                parameters=(
                    ParamSpec(name="prompt", required=True, description="Image description"),
                    ParamSpec(
                        name="size",
                        default="1024x1024",
                        enum_values=("1024x1024", "1792x1024", "1024x1792"),
                        description="Image size",
                    ),
                    ParamSpec(name="style", default="vivid", enum_values=("vivid", "natural"), description="Image style"),
                ),
                handler=self.generate_image,
                billing=ToolBilling(unit_cost=DALLE_IMAGE_COST, provider=ProviderId.OPENAI),
            ),
            Tool(
                id=ToolId.GENERATE_VIDEO,
                name="Generate Video",
                description="Create videos using Runway",
                parameters=(
                    ParamSpec(name="prompt", required=True, description="Video description"),
                    ParamSpec(name="image_url", description="Optional starting image"),
                ),
                handler=self.generate_video,
                billing=ToolBilling(provider=ProviderId.RUNWAY),
            ),
            Tool(
                id=ToolId.GENERATE_MUSIC,
                name="Generate Music",
                description="Create music using AI (MusicGen)",
                parameters=(
                    ParamSpec(name="prompt", required=True, description="Music description"),
                    ParamSpec(name="duration", type=ParamType.NUMBER, default=30, description="Duration in seconds"),
                    ParamSpec(name="genre", description="Music genre"),
                ),
                handler=self.generate_music,
                billing=ToolBilling(provider=ProviderId.REPLICATE),
            ),
            Tool(
                id=ToolId.SEND_EMAIL,
                name="Send Email",
                description="Send emails using Resend",
                parameters=(
                    ParamSpec(name="to", required=True, description="Recipient email"),
                    ParamSpec(name="subject", default="Message from your AI assistant", description="Email subject"),
                    ParamSpec(name="content", required=True, description="Email content"),
                    ParamSpec(name="sender", description="Sender email"),
                ),
                handler=self.send_email,
                billing=ToolBilling(provider=ProviderId.RESEND),
            ),
            Tool(
                id=ToolId.CODE_INTERPRETER,
                name="Code Interpreter",
                description="Execute and analyze code",
                parameters=(
                    ParamSpec(name="code", required=True, description="Code to execute"),
                    ParamSpec(name="language", default="python", description="Programming language"),
                ),
                handler=self.code_interpreter,
            ),
            Tool(
                id=ToolId.ANALYZE_DATA,
                name="Analyze Data",
                description="Perform data analysis and generate insights",
                parameters=(
                    ParamSpec(name="data", type=ParamType.OBJECT, required=True, description="Data to analyze"),
                    ParamSpec(
                        name="analysis_type",
                        default="summary",
                        enum_values=("summary", "trend"),
                        description="Type of analysis",
                    ),
                ),
                handler=self.analyze_data,
            ),
        ]


def build_default_tool_registry(providers: ProviderRegistry, timeout: float = 60.0) -> ToolRegistry:
    """Registry holding every built-in tool, bound to the given credentials."""
    return ToolRegistry(BuiltinToolkit(providers, timeout=timeout).tools())


__all__ = [
    "DALLE_IMAGE_COST",
    "BuiltinToolkit",
    "SandboxResult",
    "build_default_tool_registry",
    "run_sandboxed",
    "summarize",
]
