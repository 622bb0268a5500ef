"""Recover a JSON object from free-form model output.

Models wrap JSON in prose or markdown fences often enough that a plain
json.loads is not usable. This scans for balanced top-level objects
(respecting string literals) and returns the first one that decodes.
"""

import json
from collections.abc import Iterator
from typing import Any


MAX_RESCANS = 32


def iter_object_candidates(text: str) -> Iterator[str]:
    """Yield each balanced {...} span in order of appearance."""
    offset = 0
    for _ in range(MAX_RESCANS + 1):
        depth = 0
        start = -1
        in_string = False
        escaped = False

        for index in range(offset, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"' and depth > 0:
                in_string = True
            elif char == "{":
                if depth == 0:
                    start = index
                depth += 1
            elif char == "}" and depth > 0:
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]

        if depth == 0:
            return
        # An unclosed brace swallowed the rest; rescan after it.
        offset = start + 1


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """First decodable JSON object in `text`, or None."""
    if not text:
        return None

    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            value = json.loads(stripped)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(value, dict):
                return value

    for candidate in iter_object_candidates(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None
