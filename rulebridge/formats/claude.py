"""Claude Code: ``CLAUDE.md`` plus the ``.claude/`` rules, commands, skills and agents.

Two layouts share one codec:

- project layout, ``root`` is a project directory: ``root/CLAUDE.md`` and
  ``root/.claude/{rules,commands,skills,agents}``;
- user layout, ``root`` itself is a directory named ``.claude``: the same
  entries directly under ``root``, yielding user-scope rules.

``settings.json`` travels through the IR as a fenced JSON block so that other
formats keep it as readable text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rulebridge.constants import (
    CLAUDE_DIRNAME,
    CLAUDE_FILENAME,
    CLAUDE_SETTINGS_FILENAME,
    RULES_DIRNAME,
    SKILL_FILENAME,
)
from rulebridge.formats.base import (
    IRuleParser,
    IRuleWriter,
    parse_markdown_dir,
    read_body,
    render_body,
    write_body,
    write_markdown_dir,
)
from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir, sorted_children

MAIN_RULE_NAME = "claude"
SETTINGS_RULE_NAME = "settings"

_JSON_FENCE_RE = re.compile(r"\A```json[ \t]*\r?\n(.*?)\r?\n?```\s*\Z", re.DOTALL)


@dataclass(frozen=True)
class ClaudeLayout:
    root: Path
    base: Path
    scope: Scope

    @classmethod
    def for_root(cls, root: Path) -> "ClaudeLayout":
        if root.name == CLAUDE_DIRNAME:
            return cls(root=root, base=root, scope=Scope.USER)
        return cls(root=root, base=root / CLAUDE_DIRNAME, scope=Scope.PROJECT)

    @property
    def main_file(self) -> Path:
        return self.root / CLAUDE_FILENAME

    @property
    def settings_file(self) -> Path:
        return self.base / CLAUDE_SETTINGS_FILENAME

    @property
    def rules_dir(self) -> Path:
        return self.base / RULES_DIRNAME

    @property
    def commands_dir(self) -> Path:
        return self.base / "commands"

    @property
    def skills_dir(self) -> Path:
        return self.base / "skills"

    @property
    def agents_dir(self) -> Path:
        return self.base / "agents"


def fence_json(raw: str) -> str:
    return f"```json\n{raw.strip()}\n```"


def unfence_json(content: str) -> Optional[str]:
    match = _JSON_FENCE_RE.match(content.strip())
    if not match:
        return None
    return match.group(1).strip()


class ClaudeParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        layout = ClaudeLayout.for_root(root)
        rules: list[Rule] = []

        if layout.main_file.is_file():
            content = read_body(layout.main_file)
            if content.strip():
                rules.append(
                    Rule(
                        scope=layout.scope,
                        activation=Activation.ALWAYS,
                        name=MAIN_RULE_NAME,
                        content=content,
                    )
                )

        rules.extend(
            parse_markdown_dir(
                layout.rules_dir, layout.scope, Activation.ALWAYS, skip_blank=True
            )
        )
        rules.extend(
            parse_markdown_dir(
                layout.commands_dir, layout.scope, Activation.ON_DEMAND, skip_blank=True
            )
        )
        rules.extend(self._parse_skills(layout))
        rules.extend(
            parse_markdown_dir(
                layout.agents_dir, layout.scope, Activation.AI_DECIDES, skip_blank=True
            )
        )

        if layout.settings_file.is_file():
            raw = read_body(layout.settings_file)
            if raw.strip():
                rules.append(
                    Rule(
                        scope=layout.scope,
                        activation=Activation.ALWAYS,
                        name=SETTINGS_RULE_NAME,
                        content=fence_json(raw),
                    )
                )

        return rules

    @staticmethod
    def _parse_skills(layout: ClaudeLayout) -> list[Rule]:
        rules: list[Rule] = []
        for skill_dir in sorted_children(layout.skills_dir):
            skill_file = skill_dir / SKILL_FILENAME
            if not skill_dir.is_dir() or not skill_file.is_file():
                continue
            content = read_body(skill_file)
            if not content.strip():
                continue
            rules.append(
                Rule(
                    scope=layout.scope,
                    activation=Activation.AI_DECIDES,
                    name=skill_dir.name,
                    content=content,
                )
            )
        return rules


class ClaudeWriter(IRuleWriter):
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        if not rules:
            return []
        layout = ClaudeLayout.for_root(target)

        remaining: list[Rule] = []
        for rule in rules:
            raw_settings = (
                unfence_json(rule.content) if rule.name == SETTINGS_RULE_NAME else None
            )
            if raw_settings is not None:
                ensure_dir(layout.base)
                write_body(layout.settings_file, render_body(raw_settings))
            else:
                remaining.append(rule)

        main_rule = self._pick_main_rule(remaining)
        if main_rule is not None:
            ensure_dir(layout.root)
            write_body(layout.main_file, render_body(main_rule.content))

        by_activation: dict[Activation, list[Rule]] = {
            activation: [] for activation in Activation
        }
        for rule in remaining:
            if rule is not main_rule:
                by_activation[rule.activation].append(rule)

        always = by_activation[Activation.ALWAYS] + by_activation[Activation.GLOB]
        if always:
            write_markdown_dir(layout.rules_dir, always)
        if by_activation[Activation.ON_DEMAND]:
            write_markdown_dir(layout.commands_dir, by_activation[Activation.ON_DEMAND])
        for rule in by_activation[Activation.AI_DECIDES]:
            write_body(
                layout.skills_dir / rule.filename_stem() / SKILL_FILENAME,
                render_body(rule.content),
            )
        return []

    @staticmethod
    def _pick_main_rule(rules: list[Rule]) -> Optional[Rule]:
        always = [rule for rule in rules if rule.activation == Activation.ALWAYS]
        for rule in always:
            if rule.name == MAIN_RULE_NAME:
                return rule
        if len(always) == 1:
            return always[0]
        return None
