"""Split and serialize YAML frontmatter blocks delimited by ``---`` lines."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from rulebridge.errors import FrontmatterParseError

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\r?\n)+")


def split_frontmatter(text: str) -> tuple[Optional[str], str]:
    """Return ``(frontmatter, body)``; frontmatter is None when absent."""
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    body = _LEADING_BLANK_LINES_RE.sub("", text[match.end() :])
    return match.group(1), body


def load_frontmatter(path: Path, text: str) -> tuple[dict[str, Any], str]:
    raw, body = split_frontmatter(text)
    if raw is None:
        return {}, text
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontmatterParseError(path, str(exc).replace("\n", " ")) from exc
    if payload is None:
        return {}, body
    if not isinstance(payload, dict):
        raise FrontmatterParseError(path, "must be a YAML mapping")
    return payload, body


def dump_frontmatter(fm: dict[str, Any], body: str) -> str:
    parts: list[str] = []
    if fm:
        parts.append("---")
        parts.append(
            yaml.safe_dump(
                fm, default_flow_style=False, sort_keys=False, allow_unicode=True
            ).rstrip()
        )
        parts.append("---")
        parts.append("")

    parts.append(body.rstrip())
    return "\n".join(parts) + "\n"


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
