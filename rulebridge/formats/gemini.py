"""Gemini CLI: a single ``GEMINI.md``."""

from __future__ import annotations

from pathlib import Path

from rulebridge.constants import GEMINI_FILENAME
from rulebridge.formats.base import IRuleParser, IRuleWriter, join_rules, read_body, write_body
from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir

MAIN_RULE_NAME = "gemini"


class GeminiParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        path = root / GEMINI_FILENAME
        if not path.is_file():
            return []
        content = read_body(path)
        if not content.strip():
            return []
        return [
            Rule(
                scope=Scope.PROJECT,
                activation=Activation.ALWAYS,
                name=MAIN_RULE_NAME,
                content=content,
            )
        ]


class GeminiWriter(IRuleWriter):
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        if not rules:
            return []
        ensure_dir(target)
        write_body(target / GEMINI_FILENAME, join_rules(rules))
        return []
