import json
import math
import re
from typing import Any
from artha_ai.errors import EmptyUpstreamResponse, UnparseablePayload
from artha_ai.utils.logging_config import logger

_FENCE_JSON = "```json"
_FENCE = "```"
_NON_NUMERIC = re.compile(r"[^\d.]")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers anywhere in the text."""
    return text.replace(_FENCE_JSON, "").replace(_FENCE, "").strip()


def extract_json(text: str | None) -> Any:
    """
    Parse JSON from model output.

    Models often wrap the payload in a markdown block, or add prose and
    citation markers around it. Strategy:
    1. Strip code fence markers and try a direct parse.
    2. Parse the slice between the first '{' and the last '}'.

    Raises:
        EmptyUpstreamResponse: text is empty
        UnparseablePayload: neither attempt produced valid JSON
    """
    if not text:
        raise EmptyUpstreamResponse("Empty response from model")

    cleaned = strip_code_fences(text)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        snippet = cleaned[first_brace:last_brace + 1]
        try:
            return json.loads(snippet)
        except json.JSONDecodeError:
            logger.error(f"JSON snippet extraction failed: {snippet}")

    logger.error(f"Failed to extract JSON from text: {text}")
    raise UnparseablePayload("Could not extract valid JSON from the market data source.", raw_text=text)


def clean_numeric(value: Any, signed: bool = False) -> float:
    """
    Coerce a model-supplied number to float.

    Numbers pass through. Strings like "₹1,234.50" keep only digits and the
    decimal point; with signed=True a leading minus survives ("-1.2%" -> -1.2).
    Anything unparseable or non-finite (NaN, infinity) becomes 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0
    if not isinstance(value, str):
        return 0.0

    stripped = value.strip()
    negative = signed and stripped.startswith("-")
    try:
        number = float(_NON_NUMERIC.sub("", stripped))
    except ValueError:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return -number if negative else number
