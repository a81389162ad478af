"""Google Antigravity: ``.agent/rules/*.md`` (``.agents/rules`` is the legacy location)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rulebridge.constants import RULES_DIRNAME
from rulebridge.formats.base import (
    IRuleParser,
    IRuleWriter,
    parse_markdown_dir,
    write_markdown_dir,
)
from rulebridge.rules.models import Activation, Rule, Scope

CURRENT_RULES_DIR = Path(".agent") / RULES_DIRNAME
LEGACY_RULES_DIR = Path(".agents") / RULES_DIRNAME


def project_rules_dir(root: Path) -> Optional[Path]:
    for candidate in (CURRENT_RULES_DIR, LEGACY_RULES_DIR):
        if (root / candidate).is_dir():
            return root / candidate
    return None


class AntigravityParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        rules_dir = project_rules_dir(root)
        if rules_dir is not None:
            return parse_markdown_dir(rules_dir, Scope.PROJECT, Activation.ALWAYS)

        # User layout keeps rules/ directly under the root.
        user_rules = root / RULES_DIRNAME
        if user_rules.is_dir():
            return parse_markdown_dir(user_rules, Scope.USER, Activation.ALWAYS)
        return []


class AntigravityWriter(IRuleWriter):
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        if any(rule.scope == Scope.USER for rule in rules):
            rules_dir = target / RULES_DIRNAME
        else:
            rules_dir = target / CURRENT_RULES_DIR
        write_markdown_dir(rules_dir, rules)
        return []
