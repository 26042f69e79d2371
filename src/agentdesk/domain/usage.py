"""Usage Accountant - Tokens, Calls and Cost Across Billing Schemes.

Two billing schemes meet in one UsageRecord:

    Token-billed providers   cost = units x per-1K rate / 1000, looked up by
                             provider and the longest matching model prefix,
                             falling back to the provider's default rate.
    Per-call tools           a fixed unit cost declared on the Tool.

Unknown providers cost zero. Costs are never negative, so a UsageRecord only
ever grows as calls are accounted.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .domain_type import ProviderId
from .domain_value import UsageRecord
from .fallback import Attempt
from .provider_client import ProviderUsage
from .tool_registry import Tool, ToolInvocation, ToolRegistry


class Rate(BaseModel):
    """Price per 1K tokens; ``output`` defaults to the input price."""

    input: float = Field(ge=0.0)
    output: float | None = Field(default=None, ge=0.0)

    model_config = ConfigDict(frozen=True)

    @property
    def output_rate(self) -> float:
        return self.input if self.output is None else self.output


class ProviderPricing(BaseModel):
    default: Rate
    models: dict[str, Rate] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def rate_for(self, model: str) -> Rate:
        """Longest model-id prefix wins; case-insensitive."""
        lowered = model.lower()
        matches = [prefix for prefix in self.models if lowered.startswith(prefix)]
        if not matches:
            return self.default
        return self.models[max(matches, key=len)]


PRICING: dict[ProviderId, ProviderPricing] = {
    ProviderId.OPENAI: ProviderPricing(
        default=Rate(input=0.03),
        models={
            "gpt-4": Rate(input=0.03),
            "gpt-4-turbo": Rate(input=0.01, output=0.03),
            "gpt-4o": Rate(input=0.005, output=0.015),
            "gpt-4o-mini": Rate(input=0.00015, output=0.0006),
            "gpt-3.5-turbo": Rate(input=0.002),
        },
    ),
    ProviderId.ANTHROPIC: ProviderPricing(
        default=Rate(input=0.003, output=0.015),
        models={
            "claude-3-haiku": Rate(input=0.00025, output=0.00125),
            "claude-3-opus": Rate(input=0.015, output=0.075),
        },
    ),
    ProviderId.GOOGLE: ProviderPricing(
        default=Rate(input=0.00125, output=0.005),
        models={"gemini-1.5-flash": Rate(input=0.000075, output=0.0003)},
    ),
    ProviderId.DEEPSEEK: ProviderPricing(default=Rate(input=0.00027, output=0.0011)),
    ProviderId.TOGETHER: ProviderPricing(
        default=Rate(input=0.0009),
        models={
            "meta-llama/meta-llama-3.1-70b": Rate(input=0.0009),
            "meta-llama/meta-llama-3.1-8b": Rate(input=0.00018),
        },
    ),
    ProviderId.GROQ: ProviderPricing(default=Rate(input=0.00059, output=0.00079)),
    ProviderId.AIMLAPI: ProviderPricing(default=Rate(input=0.005, output=0.015)),
}


class UsageAccountant:
    """Convert Provider Units and Tool Calls into a UsageRecord.

    Example:
        >>> accountant = UsageAccountant()
        >>> accountant.account(1000, "openai", "gpt-4")
        0.03
    """

    def __init__(self, pricing: Mapping[ProviderId, ProviderPricing] | None = None) -> None:
        self.pricing = dict(PRICING if pricing is None else pricing)

    def _pricing(self, provider: ProviderId | str) -> ProviderPricing | None:
        try:
            return self.pricing.get(ProviderId(provider))
        except ValueError:
            return None

    def account(self, tokens: int, provider: ProviderId | str, model: str) -> float:
        """Cost of ``tokens`` units at the input rate for provider/model."""
        pricing = self._pricing(provider)
        if pricing is None or tokens <= 0:
            return 0.0
        return tokens * pricing.rate_for(model).input / 1000

    def account_usage(self, usage: ProviderUsage, provider: ProviderId | str, model: str) -> float:
        """Cost with prompt and completion units priced separately.

        Units reported only as a total (no split) are priced at the input rate.
        """
        pricing = self._pricing(provider)
        if pricing is None:
            return 0.0
        if usage.prompt_units == 0 and usage.completion_units == 0:
            return self.account(usage.total_units, provider, model)
        rate = pricing.rate_for(model)
        return (usage.prompt_units * rate.input + usage.completion_units * rate.output_rate) / 1000

    @staticmethod
    def charge_tool(tool: Tool) -> float:
        return tool.billing.unit_cost

    def tally(
        self,
        attempts: Sequence[Attempt],
        invocations: Sequence[ToolInvocation],
        registry: ToolRegistry,
    ) -> UsageRecord:
        """Accumulate One Turn's Usage.

        Every provider attempt counts as an API call and contributes its
        billed units, including attempts that failed. Every executed tool
        counts as an API call; only successful tool calls are charged.
        """
        record = UsageRecord()
        for attempt in attempts:
            usage = attempt.outcome.usage
            record = record.add(
                tokens=usage.total_units,
                api_calls=1,
                cost=self.account_usage(usage, attempt.provider_id, attempt.model),
            )
        for invocation in invocations:
            tool = registry.get(invocation.tool_id)
            cost = self.charge_tool(tool) if tool is not None and invocation.result.success else 0.0
            record = record.add(api_calls=1, cost=cost)
        return record


__all__ = ["PRICING", "ProviderPricing", "Rate", "UsageAccountant"]
