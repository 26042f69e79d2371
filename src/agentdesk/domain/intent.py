"""Intent Classifier - Keyword-Driven Tool Selection.

Decides which enabled tools run before the model answers, and extracts their
parameters from the user message. Matching is deliberately simple: a tool is
selected when any of its keywords is a substring of the lowercased message.
Keywords overlap ("find data", "create video"), so one message may select
several tools; that ambiguity is accepted.

Selections are reported in registry declaration order, which is also the
order the dispatcher executes them in.

Rule Table:
    KEYWORD_RULES maps tool id → IntentRule (keywords, strip patterns and the
    parameter extractor). The table is data, so a deployment can pass its own.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .domain_type import ToolId
from .tool_registry import ToolRegistry

ParameterExtractor = Callable[[str, tuple[str, ...]], dict[str, Any]]


class ToolSelection(BaseModel):
    """Tool chosen for this turn plus the parameters extracted for it."""

    tool_id: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class IntentRule(BaseModel):
    keywords: tuple[str, ...]
    strip_patterns: tuple[str, ...] = ()
    extractor: ParameterExtractor

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def matches(self, message: str) -> bool:
        lowered = message.lower()
        return any(keyword in lowered for keyword in self.keywords)


# =============================================================================
# EXTRACTORS
# =============================================================================

_EMAIL_ADDRESS = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_FENCED_CODE = re.compile(r"```(?:[a-zA-Z0-9_+-]+)?\s*\n?(.*?)```", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`]+)`")
_NUMBER = re.compile(r"(?<![\w.])-?\d+(?:\.\d+)?(?![\w.])")


def strip_phrases(message: str, patterns: Iterable[str]) -> str:
    """Remove command phrases and tidy whitespace and edge punctuation.

    Falls back to the original message when stripping leaves nothing.

    Example:
        >>> strip_phrases("search for the latest AI news", (r"\\bsearch\\s+for\\b", r"\\bsearch\\b"))
        'the latest AI news'
    """
    cleaned = message
    for pattern in patterns:
        cleaned = re.sub(pattern, " ", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" \t\n,.;:!?")
    return cleaned or message.strip()


def _text_parameter(name: str) -> ParameterExtractor:
    def extract(message: str, strip_patterns: tuple[str, ...]) -> dict[str, Any]:
        return {name: strip_phrases(message, strip_patterns)}

    return extract


def extract_email(message: str, strip_patterns: tuple[str, ...]) -> dict[str, Any]:
    """Recipient, subject and body from a free-form email request.

    Recognized forms:
        "email bob@example.com subject: Launch saying we ship Friday"
        "send an email to bob@example.com about the launch"
    """
    params: dict[str, Any] = {}
    if match := _EMAIL_ADDRESS.search(message):
        params["to"] = match.group(0)

    subject = re.search(r"subject\s*[:=]\s*[\"']?(.+?)[\"']?(?=\s+(?:saying|that says|with message|body)\b|[\n;]|$)", message, re.IGNORECASE)
    if subject is None:
        subject = re.search(r"\babout\s+(.+?)(?=\s+(?:saying|that says)\b|[\n;.]|$)", message, re.IGNORECASE)
    if subject:
        params["subject"] = subject.group(1).strip()

    body = re.search(r"(?:saying|that says|with message|body\s*[:=])\s*[\"']?(.+?)[\"']?\s*$", message, re.IGNORECASE | re.DOTALL)
    if body:
        params["content"] = body.group(1).strip()
    else:
        remainder = _EMAIL_ADDRESS.sub(" ", message)
        params["content"] = strip_phrases(remainder, strip_patterns)
    return params


def extract_code(message: str, strip_patterns: tuple[str, ...]) -> dict[str, Any]:
    """Prefer a fenced block, then inline backticks, then the stripped message."""
    params: dict[str, Any] = {}
    fence = re.search(r"```([a-zA-Z0-9_+-]+)?", message)
    if fence and fence.group(1):
        params["language"] = fence.group(1).lower()
    if match := _FENCED_CODE.search(message):
        params["code"] = match.group(1).strip()
    elif match := _INLINE_CODE.search(message):
        params["code"] = match.group(1).strip()
    else:
        params["code"] = strip_phrases(message, strip_patterns)
    return params


def extract_data(message: str, strip_patterns: tuple[str, ...]) -> dict[str, Any]:
    """Inline JSON object/array, else every number found in the message.

    Arrays are wrapped so the tool always receives an object:
    numbers become ``{"values": [...]}``, anything else ``{"records": [...]}``.
    No data found means no parameter; the dispatcher then reports the
    missing required value as a tool failure.
    """
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = message.find(opener), message.rfind(closer)
        if start == -1 or end <= start:
            continue
        try:
            parsed = json.loads(message[start : end + 1])
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return {"data": parsed}
        if isinstance(parsed, list):
            numeric = all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in parsed)
            return {"data": {"values": parsed} if numeric else {"records": parsed}}

    numbers = [float(n) for n in _NUMBER.findall(message)]
    if numbers:
        return {"data": {"values": numbers}}
    return {}


# =============================================================================
# RULE TABLE
# =============================================================================

_MEDIA_NOUNS = r"(?:an?\s+)?(?:{noun})s?(?:\s+(?:of|about|for)\b)?"

KEYWORD_RULES: dict[str, IntentRule] = {
    ToolId.WEB_SEARCH: IntentRule(
        keywords=("search", "find", "look up", "current", "latest", "news", "information"),
        strip_patterns=(r"\bsearch\s+(?:the\s+web\s+)?for\b", r"\bsearch\b", r"\bfind\b", r"\blook\s+up\b"),
        extractor=_text_parameter("query"),
    ),
    ToolId.GENERATE_IMAGE: IntentRule(
        keywords=("image", "picture", "draw", "create image", "generate image"),
        strip_patterns=(
            _MEDIA_NOUNS.format(noun="image|picture"),
            r"\b(?:create|generate|draw|make)\b",
        ),
        extractor=_text_parameter("prompt"),
    ),
    ToolId.GENERATE_VIDEO: IntentRule(
        keywords=("video", "create video", "generate video", "animation"),
        strip_patterns=(_MEDIA_NOUNS.format(noun="video"), r"\b(?:create|generate|make)\b"),
        extractor=_text_parameter("prompt"),
    ),
    ToolId.GENERATE_MUSIC: IntentRule(
        keywords=("music", "song", "create music", "generate music", "compose"),
        strip_patterns=(
            r"\b(?:some\s+)?music\b(?:\s+(?:of|about|for)\b)?",
            _MEDIA_NOUNS.format(noun="song"),
            r"\b(?:create|generate|compose|make)\b",
        ),
        extractor=_text_parameter("prompt"),
    ),
    ToolId.SEND_EMAIL: IntentRule(
        keywords=("email", "send email", "contact", "notify"),
        strip_patterns=(r"\bsend\s+(?:an?\s+)?email\b", r"\bemail\b", r"\bnotify\b", r"\bcontact\b", r"\bto\b"),
        extractor=extract_email,
    ),
    ToolId.CODE_INTERPRETER: IntentRule(
        keywords=("code", "execute", "run code", "program", "script"),
        strip_patterns=(r"\b(?:run|execute)\s+(?:this\s+)?(?:code|script|program)?\b:?", r"\bcode\b"),
        extractor=extract_code,
    ),
    ToolId.ANALYZE_DATA: IntentRule(
        keywords=("analyze", "data", "statistics", "insights", "report"),
        extractor=extract_data,
    ),
}


class IntentClassifier:
    """Select Enabled Tools for a Message.

    Example:
        >>> classifier = IntentClassifier(tool_registry)
        >>> [s.tool_id for s in classifier.classify("search for AI news", ["web_search"])]
        ['web_search']
    """

    def __init__(self, registry: ToolRegistry, rules: Mapping[str, IntentRule] | None = None) -> None:
        self.registry = registry
        self.rules = dict(KEYWORD_RULES if rules is None else rules)

    def classify(self, message: str, enabled_tool_ids: Iterable[str]) -> list[ToolSelection]:
        """Tools to run for this message, in registry declaration order.

        Args:
            message: Raw user message
            enabled_tool_ids: Tools the agent is allowed to use

        Returns:
            One ToolSelection per matching enabled tool; empty when the
            message matches nothing or no tools are enabled
        """
        enabled = set(enabled_tool_ids)
        selections: list[ToolSelection] = []
        for tool_id in self.registry.ids():
            rule = self.rules.get(tool_id)
            if tool_id not in enabled or rule is None or not rule.matches(message):
                continue
            selections.append(
                ToolSelection(tool_id=tool_id, parameters=rule.extractor(message, rule.strip_patterns))
            )
        return selections


__all__ = [
    "KEYWORD_RULES",
    "IntentClassifier",
    "IntentRule",
    "ParameterExtractor",
    "ToolSelection",
    "extract_code",
    "extract_data",
    "extract_email",
    "strip_phrases",
]
