"""Minimal parser for the ``---`` metadata block at the top of a SKILL.md.

This is deliberately not a YAML parser.  Each ``key: value`` line becomes
one entry and the value is coerced by the first rule that matches:

1. ``"quoted"`` or ``'quoted'`` -> the string without quotes
2. ``true`` / ``false`` -> bool
3. numeric literal (``12``, ``-3.5``, ``1e3``) -> int or float
4. ``[a, "b", c]`` -> list of strings
5. anything else -> the raw string

A key whose value is a block indicator (``|``, ``>`` and their ``-``/``+``
variants) collects the indented lines that follow it.  Other indented lines
(nested mappings) are ignored.
"""

from __future__ import annotations

import re
from typing import Any

DELIMITER = "---"

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_BLOCK_INDICATORS = frozenset({"|", "|-", "|+", ">", ">-", ">+"})


def coerce_scalar(raw: str) -> Any:
    """Apply the coercion rules to one raw value."""

    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value == "true":
        return True
    if value == "false":
        return False
    if _NUMBER_RE.match(value):
        if any(ch in value for ch in ".eE"):
            return float(value)
        return int(value)
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        if not inner:
            return []
        return [item.strip().strip("\"'") for item in inner.split(",")]
    return value


def extract_block(text: str) -> str | None:
    """Return the raw text between the opening and closing delimiters, if any."""

    normalized = text.replace("\r\n", "\n").lstrip("\ufeff")
    if not normalized.startswith(DELIMITER):
        return None
    end = normalized.find("\n" + DELIMITER, len(DELIMITER))
    if end == -1:
        return None
    return normalized[len(DELIMITER) + 1 : end].strip("\n")


def _fold(lines: list[str], indicator: str) -> str:
    stripped = [line.strip() for line in lines]
    if indicator.startswith("|"):
        return "\n".join(stripped).strip()
    return " ".join(part for part in stripped if part).strip()


def parse_frontmatter(text: str) -> dict[str, Any] | None:
    """Parse the leading metadata block into a typed mapping.

    Returns None when the text has no delimited block or the block holds no keys.
    """

    block = extract_block(text)
    if block is None:
        return None

    result: dict[str, Any] = {}
    block_key: str | None = None
    block_indicator = ""
    block_lines: list[str] = []

    def _close_block() -> None:
        nonlocal block_key, block_lines
        if block_key is not None:
            result[block_key] = _fold(block_lines, block_indicator)
        block_key = None
        block_lines = []

    for line in block.split("\n"):
        if line[:1].isspace():
            if block_key is not None:
                block_lines.append(line)
            continue
        _close_block()

        key, sep, raw_value = line.partition(":")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue

        raw_value = raw_value.strip()
        if raw_value in _BLOCK_INDICATORS:
            block_key = key
            block_indicator = raw_value
            continue
        result[key] = coerce_scalar(raw_value)

    _close_block()
    return result or None
