"""Shared JSON extraction and repair utilities for LLM responses.

Models wrap JSON in code fences, add commentary, or leave trailing commas.
These helpers cut the JSON fragment out of the response text and repair it
before parsing.
"""

from __future__ import annotations

import json
from typing import Any

from json_repair import repair_json


def find_json_fragment(text: str) -> str:
    """Return the outermost JSON object or array found in ``text``.

    Whichever delimiter appears first wins, so a bare array is preferred
    when it precedes any object.

    Raises:
        ValueError: If no opening delimiter or no matching closing delimiter
            is present.
    """
    start_obj = text.find("{")
    start_arr = text.find("[")

    if start_obj == -1 and start_arr == -1:
        raise ValueError("Response text does not contain JSON object or array delimiters.")

    if start_obj == -1 or (start_arr != -1 and start_arr < start_obj):
        start, end_char = start_arr, "]"
    else:
        start, end_char = start_obj, "}"

    end = text.rfind(end_char)
    if end == -1 or end <= start:
        raise ValueError("Response text does not contain matching JSON delimiters.")
    return text[start : end + 1]


def parse_json_response(text: str, *, repair: bool = True) -> Any:
    """Extract and repair JSON content from LLM response text.

    Args:
        text: The response text from an LLM that should contain JSON
        repair: Run json_repair over the fragment before parsing

    Returns:
        The parsed JSON value (typically a dict or list)

    Raises:
        ValueError: If JSON delimiters are not found or text is invalid
        json.JSONDecodeError: If the (repaired) text still cannot be parsed

    Example:
        >>> text = "Here's the result: {\"key\": \"value\"} Thanks!"
        >>> parse_json_response(text)["key"]
        'value'
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected string input, got {type(text)}")

    fragment = find_json_fragment(text)
    if repair:
        fragment = repair_json(fragment)
    return json.loads(fragment)


def load_json_document(text: str) -> Any:
    """Parse ``text`` strictly, falling back to extraction and repair."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return parse_json_response(text)
