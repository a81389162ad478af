"""GitHub Copilot: repository-wide and path-scoped instruction files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rulebridge.constants import (
    COPILOT_INSTRUCTIONS_FILENAME,
    COPILOT_INSTRUCTIONS_SUFFIX,
)
from rulebridge.formats.base import (
    IRuleParser,
    IRuleWriter,
    iter_files,
    join_rules,
    read_body,
    write_body,
)
from rulebridge.rules.frontmatter import dump_frontmatter, load_frontmatter, optional_str
from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir

GITHUB_DIR = Path(".github")
INSTRUCTIONS_DIR = GITHUB_DIR / "instructions"
MAIN_RULE_NAME = "copilot-instructions"


class CopilotParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        rules: list[Rule] = []

        main_file = root / GITHUB_DIR / COPILOT_INSTRUCTIONS_FILENAME
        if main_file.is_file():
            content = read_body(main_file)
            if content.strip():
                rules.append(
                    Rule(
                        scope=Scope.PROJECT,
                        activation=Activation.ALWAYS,
                        name=MAIN_RULE_NAME,
                        content=content,
                    )
                )

        for path in iter_files(root / INSTRUCTIONS_DIR, COPILOT_INSTRUCTIONS_SUFFIX):
            fm, body = load_frontmatter(path, read_body(path))
            stem = path.name[: -len(COPILOT_INSTRUCTIONS_SUFFIX)]
            apply_to = optional_str(fm.get("applyTo"))
            if apply_to is not None:
                activation, globs = Activation.GLOB, [apply_to]
            else:
                activation, globs = Activation.ALWAYS, None
            rules.append(
                Rule(
                    scope=Scope.PATH,
                    activation=activation,
                    globs=globs,
                    name=optional_str(fm.get("name")) or stem,
                    description=optional_str(fm.get("description")),
                    content=body.rstrip(),
                )
            )

        return rules


class CopilotWriter(IRuleWriter):
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        always_rules: list[Rule] = []
        glob_rules: list[Rule] = []
        for rule in rules:
            if rule.activation == Activation.GLOB or rule.globs:
                glob_rules.append(rule)
            else:
                always_rules.append(rule)

        if always_rules:
            github_dir = ensure_dir(target / GITHUB_DIR)
            write_body(github_dir / COPILOT_INSTRUCTIONS_FILENAME, join_rules(always_rules))

        if glob_rules:
            instructions_dir = ensure_dir(target / INSTRUCTIONS_DIR)
            for rule in glob_rules:
                fm: dict[str, Any] = {}
                if rule.name is not None:
                    fm["name"] = rule.name
                if rule.description is not None:
                    fm["description"] = rule.description
                if rule.globs:
                    fm["applyTo"] = ",".join(rule.globs)
                write_body(
                    instructions_dir
                    / f"{rule.filename_stem()}{COPILOT_INSTRUCTIONS_SUFFIX}",
                    dump_frontmatter(fm, rule.content),
                )

        return []
