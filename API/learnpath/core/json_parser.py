import json
import re

from learnpath.core.llm_errors import NotJson, ParseError

# Opening fence with optional language tag, e.g. ```json
_OPEN_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_CLOSE_FENCE = "```"


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPEN_FENCE.sub("", cleaned, count=1)
    if cleaned.endswith(_CLOSE_FENCE):
        cleaned = cleaned[: -len(_CLOSE_FENCE)]
    return cleaned.strip()


def _span(text: str, opener: str, closer: str) -> tuple[int, int] | None:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return start, end + 1


def normalize_llm_json(text: str) -> str:
    """Extract the best-guess JSON payload from a raw completion.

    Strips markdown fencing, then picks the first-to-last brace span or the
    first-to-last bracket span, whichever starts earlier. Text with neither is
    returned trimmed but otherwise unchanged so the decoder fails loudly.
    """
    cleaned = _strip_fences(text or "")
    obj = _span(cleaned, "{", "}")
    arr = _span(cleaned, "[", "]")
    if obj and arr:
        start, end = arr if arr[0] < obj[0] else obj
        return cleaned[start:end]
    if obj or arr:
        start, end = obj or arr
        return cleaned[start:end]
    return cleaned


def parse_llm_json(text: str):
    candidate = normalize_llm_json(text)
    if not candidate.startswith(("{", "[")):
        raise NotJson(candidate)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ParseError(str(exc), candidate) from exc
