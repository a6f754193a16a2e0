"""Extract JSON payloads from model replies."""

from typing import Any, Dict, List
import json
import re

from ortprep.ai.client import AIResponseParseError

FENCED_JSON = re.compile(r"```json\n?([\s\S]*?)\n?```")
BRACED = re.compile(r"\{[\s\S]*\}")
BRACKETED = re.compile(r"\[[\s\S]*\]")


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the object in a ```json fence, else the outermost braces, else the whole text."""
    match = FENCED_JSON.search(text)
    if match:
        candidate = match.group(1)
    else:
        match = BRACED.search(text)
        candidate = match.group(0) if match else text

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"Failed to parse AI response: {e}") from e
    if not isinstance(value, dict):
        raise AIResponseParseError("AI response is not a JSON object")
    return value


def extract_json_array(text: str) -> List[Any]:
    match = BRACKETED.search(text)
    if not match:
        raise AIResponseParseError("No JSON array found in response")
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"Failed to parse AI response: {e}") from e
    if not isinstance(value, list):
        raise AIResponseParseError("AI response is not a JSON array")
    return value
