"""Parse and validate the collaborator's JSON reply."""

import json
import logging
import re
from collections.abc import Callable

from .client import AnalysisError
from .models import (
    UNKNOWN,
    AnalysisResult,
    DecodedResult,
    Environment,
    Mistake,
    Style,
    Success,
    UserProfile,
)

logger = logging.getLogger(__name__)

Transform = Callable[[str], str | None]


class AnalysisFormatError(AnalysisError, ValueError):
    """The reply did not contain a usable JSON object."""


_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str | None:
    """Remove an optional markdown code fence around the reply."""
    stripped = text.strip()
    stripped = _FENCE_OPEN.sub("", stripped)
    stripped = _FENCE_CLOSE.sub("", stripped)
    return stripped or None


def extract_brace_span(text: str) -> str | None:
    """Slice from the first ``{`` to the last ``}``."""
    cleaned = strip_code_fences(text) or ""
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first < 0 or last <= first:
        return None
    return cleaned[first : last + 1]


def _regex_repair(pattern: str, replacement: str, flags: int = 0) -> Transform:
    compiled = re.compile(pattern, flags)

    def repair(text: str) -> str | None:
        repaired, count = compiled.subn(replacement, text)
        return repaired if count else None

    repair.__name__ = f"repair_{pattern}"
    return repair


_SMART_DOUBLE_QUOTES = str.maketrans({"“": '"', "”": '"', "„": '"', "‟": '"'})


def normalize_smart_quotes(text: str) -> str | None:
    """Replace typographic double quotes with ASCII ones."""
    normalized = text.translate(_SMART_DOUBLE_QUOTES)
    return normalized if normalized != text else None


_EXAMPLES_ARRAY = re.compile(r'("examples"\s*:\s*\[)(.*?)(\])', re.DOTALL)


def _escape_inner_quotes(items: str) -> str:
    """Escape quotes inside string items that do not end the item."""
    out = []
    in_string = False
    i = 0
    while i < len(items):
        char = items[i]
        if char == "\\" and in_string:
            out.append(items[i : i + 2])
            i += 2
            continue
        if char == '"':
            if not in_string:
                in_string = True
            else:
                rest = items[i + 1 :].lstrip()
                if rest and rest[0] not in ",]}:":
                    out.append('\\"')
                    i += 1
                    continue
                in_string = False
        out.append(char)
        i += 1
    return "".join(out)


def escape_example_quotes(text: str) -> str | None:
    """Escape stray quotes inside ``"examples": [...]`` string arrays."""
    repaired = _EXAMPLES_ARRAY.sub(
        lambda m: m.group(1) + _escape_inner_quotes(m.group(2)) + m.group(3), text
    )
    return repaired if repaired != text else None


# Ordered repairs for mistakes seen in model output. Each returns None when
# it does not apply.
REPAIRS: list[Transform] = [
    normalize_smart_quotes,
    # "a" followed by "b" -> "a", "b"
    _regex_repair(r'("\s+)followed by(\s+")', r"\1, \2"),
    # trailing comma before a closing bracket
    _regex_repair(r",(\s*[}\]])", r"\1"),
    # adjacent objects in an array without a comma
    _regex_repair(r"}(\s*){", r"},\1{"),
    # adjacent strings on separate lines without a comma
    _regex_repair(r'"(\s*\n\s*)"', r'",\1"'),
    escape_example_quotes,
]


def apply_repairs(text: str, repairs: list[Transform] = REPAIRS) -> str | None:
    """Apply every applicable repair, in order, to the brace span of text."""
    span = extract_brace_span(text)
    if span is None:
        return None

    changed = False
    for repair in repairs:
        repaired = repair(span)
        if repaired is not None:
            span = repaired
            changed = True
    return span if changed else None


# Recovery ladder: each stage derives a candidate from the raw reply.
STAGES: list[Transform] = [strip_code_fences, extract_brace_span, apply_repairs]


def parse_analysis_response(raw: str, stages: list[Transform] = STAGES) -> dict:
    """
    Extract the JSON object from a collaborator reply.

    Raises:
        AnalysisFormatError: If no stage yields a JSON object.
    """
    errors = []
    for stage in stages:
        candidate = stage(raw)
        if candidate is None:
            continue
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            errors.append(f"{stage.__name__}: {e}")
            continue
        if isinstance(data, dict):
            return data
        errors.append(f"{stage.__name__}: top-level value is {type(data).__name__}")

    preview = raw[:200].replace("\n", " ")
    raise AnalysisFormatError(
        f"No valid JSON object in response ({'; '.join(errors) or 'empty reply'}): {preview!r}"
    )


class _Decoder:
    """Collects defaulted field paths while decoding one payload."""

    def __init__(self):
        self.defaulted: list[str] = []

    def string(self, data: dict, key: str, path: str, default: str = UNKNOWN) -> str:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value
        if value is None or isinstance(value, str):
            self.defaulted.append(path)
            return default
        self.defaulted.append(path)
        return str(value)

    def string_list(self, data: dict, key: str, path: str) -> list[str]:
        value = data.get(key)
        if isinstance(value, list):
            items = [item for item in value if isinstance(item, str)]
            if len(items) != len(value):
                self.defaulted.append(path)
            return items
        self.defaulted.append(path)
        if isinstance(value, str) and value.strip() and value.strip().lower() != UNKNOWN:
            return [value]
        return []

    def mapping(self, data: dict, keys: tuple[str, ...], path: str) -> dict:
        for key in keys:
            value = data.get(key)
            if isinstance(value, dict):
                return value
        self.defaulted.append(path)
        return {}

    def findings(self, data: dict, key: str) -> list[dict]:
        value = data.get(key)
        if not isinstance(value, list):
            self.defaulted.append(key)
            return []

        items = []
        for i, item in enumerate(value):
            if not isinstance(item, dict):
                self.defaulted.append(f"{key}[{i}]")
                continue
            items.append(
                {
                    "type": self.string(item, "type", f"{key}[{i}].type"),
                    "description": self.string(item, "description", f"{key}[{i}].description", ""),
                    "evidence": self.string(item, "evidence", f"{key}[{i}].evidence", ""),
                    "lesson": self.string(item, "lesson", f"{key}[{i}].lesson", ""),
                }
            )
        return items


def decode_analysis_result(data: dict) -> DecodedResult:
    """
    Validate a parsed reply against the analysis schema.

    Missing string fields become "unknown", missing list fields become empty
    lists, and "unknown" given for a list field counts as empty. Every field
    that had to be defaulted or coerced is listed in the result.
    """
    decoder = _Decoder()

    profile = decoder.mapping(data, ("userProfile", "user_profile"), "userProfile")
    environment = decoder.mapping(profile, ("environment",), "userProfile.environment")
    style = decoder.mapping(profile, ("style",), "userProfile.style")

    result = AnalysisResult(
        mistakes=[Mistake(**item) for item in decoder.findings(data, "mistakes")],
        successes=[Success(**item) for item in decoder.findings(data, "successes")],
        user_profile=UserProfile(
            environment=Environment(
                os=decoder.string(environment, "os", "userProfile.environment.os"),
                restrictions=decoder.string_list(
                    environment, "restrictions", "userProfile.environment.restrictions"
                ),
                tools=decoder.string_list(environment, "tools", "userProfile.environment.tools"),
            ),
            style=Style(
                verbosity=decoder.string(style, "verbosity", "userProfile.style.verbosity"),
                tech_level=decoder.string(
                    style, "techLevel" if "techLevel" in style else "tech_level",
                    "userProfile.style.techLevel",
                ),
                patience=decoder.string(style, "patience", "userProfile.style.patience"),
            ),
            boundaries=decoder.string_list(profile, "boundaries", "userProfile.boundaries"),
            preferences=decoder.string_list(profile, "preferences", "userProfile.preferences"),
        ),
        recommendations=decoder.string_list(data, "recommendations", "recommendations"),
    )

    if decoder.defaulted:
        logger.debug(f"Defaulted fields in analysis result: {', '.join(decoder.defaulted)}")
    return DecodedResult(result=result, defaulted_fields=decoder.defaulted)
