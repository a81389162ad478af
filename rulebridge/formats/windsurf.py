"""Windsurf: ``.windsurf/rules/*.md`` per project, ``global_rules.md`` for the user."""

from __future__ import annotations

import logging
from pathlib import Path

from rulebridge.constants import (
    WINDSURF_FILE_CHAR_LIMIT,
    WINDSURF_GLOBAL_FILENAME,
    WINDSURF_TOTAL_CHAR_LIMIT,
)
from rulebridge.formats.base import (
    IRuleParser,
    IRuleWriter,
    join_rules,
    parse_markdown_dir,
    read_body,
    render_body,
    write_body,
)
from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir

logger = logging.getLogger(__name__)

WINDSURF_RULES_DIR = Path(".windsurf") / "rules"
GLOBAL_RULE_NAME = "global-rules"


class WindsurfParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        global_rules = root / WINDSURF_GLOBAL_FILENAME
        if global_rules.is_file():
            content = read_body(global_rules)
            if not content.strip():
                return []
            return [
                Rule(
                    scope=Scope.USER,
                    activation=Activation.ALWAYS,
                    name=GLOBAL_RULE_NAME,
                    content=content,
                )
            ]

        return parse_markdown_dir(
            root / WINDSURF_RULES_DIR, Scope.PROJECT, Activation.ALWAYS
        )


class WindsurfWriter(IRuleWriter):
    """Windsurf truncates oversized rules silently, so limits only warn."""

    def write(self, rules: list[Rule], target: Path) -> list[str]:
        if any(rule.scope == Scope.USER for rule in rules):
            ensure_dir(target)
            content = join_rules(rules)
            write_body(target / WINDSURF_GLOBAL_FILENAME, content)
            return _emit(
                _file_limit_warnings(WINDSURF_GLOBAL_FILENAME, len(content))
                + _total_limit_warnings(len(content))
            )

        rules_dir = ensure_dir(target / WINDSURF_RULES_DIR)
        warnings: list[str] = []
        total_chars = 0
        for rule in rules:
            content = render_body(rule.content)
            char_count = len(content)
            warnings.extend(_file_limit_warnings(f"rule '{rule.name or 'rule'}'", char_count))
            total_chars += char_count
            write_body(rules_dir / f"{rule.filename_stem()}.md", content)

        warnings.extend(_total_limit_warnings(total_chars))
        return _emit(warnings)


def _emit(warnings: list[str]) -> list[str]:
    for warning in warnings:
        logger.warning(warning)
    return warnings


def _file_limit_warnings(label: str, char_count: int) -> list[str]:
    if char_count <= WINDSURF_FILE_CHAR_LIMIT:
        return []
    return [
        f"{label} is {char_count} chars, exceeds "
        f"Windsurf per-file limit of {WINDSURF_FILE_CHAR_LIMIT}"
    ]


def _total_limit_warnings(total_chars: int) -> list[str]:
    if total_chars <= WINDSURF_TOTAL_CHAR_LIMIT:
        return []
    return [
        f"total rules content is {total_chars} chars, exceeds "
        f"Windsurf total limit of {WINDSURF_TOTAL_CHAR_LIMIT}"
    ]
