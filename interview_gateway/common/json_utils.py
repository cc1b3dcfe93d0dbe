"""
JSON Utilities for LLM Response Parsing.

Vendor models are asked for JSON but do not always deliver it cleanly:
markdown fences, prose around the payload, trailing commas, missing commas
between lines, or output cut off before the closing brackets (common with
small local models hitting their token limit).

Two entry points:
- parse_json_response(): strict, for vendors that honour JSON mode
- parse_llm_json(): tolerant, runs the repair pass and json-repair fallback
"""

import json
import logging
import re
from typing import Any, List, Union

from json_repair import repair_json

logger = logging.getLogger(__name__)

JsonValue = Union[dict, list]

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_MISSING_COMMA = re.compile(r"([\"\d\]}\w])\s*\n\s*\"")


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code block wrappers.

    Handles ```json ... ```, ``` ... ``` and surrounding whitespace.
    """
    result = text.strip()
    result = _FENCE_OPEN.sub("", result)
    result = _FENCE_CLOSE.sub("", result)
    return result.strip()


def extract_json_text(text: str) -> str:
    """
    Cut the JSON payload out of surrounding prose.

    Takes everything from the first '{' or '[' to the last '}' or ']'. When
    the payload was truncated (that span does not balance), everything from
    the opening bracket to the end of the text is returned so the repair
    pass can close it without dropping the trailing items.

    Raises:
        ValueError: If the text contains no object or array at all
    """
    cleaned = strip_code_fences(text)
    match = re.search(r"[\[{]", cleaned)
    if not match:
        raise ValueError(f"No JSON found in text: {cleaned[:200]}")

    start = match.start()
    end = max(cleaned.rfind("}"), cleaned.rfind("]"))
    if end < start:
        return cleaned[start:]

    span = cleaned[start:end + 1]
    if _close_unbalanced(span) != span:
        return cleaned[start:]
    return span


def _close_unbalanced(text: str) -> str:
    """
    Append whatever closers the text is missing.

    Scans outside of string literals, tracking open braces/brackets on a
    stack, then closes an unterminated string and every open container in
    reverse nesting order.
    """
    stack: List[str] = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            stack.append("}")
        elif ch == "[":
            stack.append("]")
        elif ch in "}]" and stack and stack[-1] == ch:
            stack.pop()

    suffix = '"' if in_string else ""
    return text + suffix + "".join(reversed(stack))


def _strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing brace/bracket, outside strings."""
    out: List[str] = []
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "," and text[i + 1:].lstrip()[:1] in ("}", "]"):
            continue
        out.append(ch)

    return "".join(out)


def repair_json_text(text: str) -> str:
    """
    Syntactic repair pass for malformed JSON.

    In order:
    1. drop trailing commas before a closing bracket (string-aware)
    2. insert commas between values separated only by a newline
    3. close unbalanced braces/brackets (string-aware)

    Example:
        >>> repair_json_text('{"a":1,"b":2')
        '{"a":1,"b":2}'
        >>> repair_json_text('{"a":1,}')
        '{"a":1}'
    """
    repaired = _strip_trailing_commas(text)
    repaired = _MISSING_COMMA.sub(r'\1,\n"', repaired)
    repaired = _close_unbalanced(repaired)
    # closing may expose a new trailing comma, e.g. '{"a":1,' -> '{"a":1,}'
    return _strip_trailing_commas(repaired)


def parse_json_response(text: str) -> Any:
    """
    Strict parse for well-behaved vendors: strip fences, then json.loads.

    Raises:
        ValueError: If the text is not valid JSON
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from model: {e}") from e


def parse_llm_json(text: str) -> JsonValue:
    """
    Parse JSON from an LLM response with robust error recovery.

    Steps:
    1. Strip markdown fences and extract the object/array
    2. Direct json.loads()
    3. repair_json_text() then json.loads()
    4. json-repair library as a last resort

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed object or array

    Raises:
        ValueError: If no valid JSON can be extracted or repaired
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = extract_json_text(text)

    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        pass

    repaired = repair_json_text(json_str)
    try:
        parsed = json.loads(repaired)
        logger.debug("Parsed model output after syntactic repair")
        return parsed
    except json.JSONDecodeError:
        pass

    try:
        salvaged = repair_json(json_str, return_objects=True)
    except Exception as e:
        raise ValueError(f"Failed to parse or repair JSON: {e}") from e

    if isinstance(salvaged, (dict, list)) and salvaged:
        logger.debug("Parsed model output with json-repair fallback")
        return salvaged

    raise ValueError(f"Failed to parse or repair JSON. Original text (first 500 chars): {text[:500]}")
