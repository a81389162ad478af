"""Cursor: ``.cursor/rules/*.mdc`` with camelCase YAML frontmatter."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from rulebridge.formats.base import (
    IRuleParser,
    IRuleWriter,
    iter_files,
    read_body,
    write_body,
)
from rulebridge.rules.frontmatter import dump_frontmatter, load_frontmatter, optional_str
from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir

CURSOR_RULES_DIR = Path(".cursor") / "rules"


def normalize_globs(raw: Any) -> Optional[list[str]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, list):
        items = [str(item) for item in raw if item is not None]
    else:
        items = [str(raw)]
    globs = [item.strip() for item in items if item.strip()]
    return globs or None


def infer_activation(
    always_apply: Any, globs: Optional[list[str]], description: Optional[str]
) -> Activation:
    if always_apply is True:
        return Activation.ALWAYS
    if globs:
        return Activation.GLOB
    if description is not None:
        return Activation.AI_DECIDES
    return Activation.ON_DEMAND


class CursorParser(IRuleParser):
    def parse(self, root: Path) -> list[Rule]:
        rules: list[Rule] = []
        for path in iter_files(root / CURSOR_RULES_DIR, ".mdc"):
            fm, body = load_frontmatter(path, read_body(path))
            globs = normalize_globs(fm.get("globs"))
            description = optional_str(fm.get("description"))
            rules.append(
                Rule(
                    scope=Scope.PROJECT,
                    activation=infer_activation(
                        fm.get("alwaysApply"), globs, description
                    ),
                    globs=globs,
                    name=path.stem,
                    description=description,
                    content=body.rstrip(),
                )
            )
        return rules


class CursorWriter(IRuleWriter):
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        rules_dir = ensure_dir(target / CURSOR_RULES_DIR)
        for rule in rules:
            fm: dict[str, Any] = {}
            if rule.description is not None:
                fm["description"] = rule.description
            if rule.globs:
                fm["globs"] = list(rule.globs)
            if rule.activation == Activation.ALWAYS:
                fm["alwaysApply"] = True
            write_body(
                rules_dir / f"{rule.filename_stem()}.mdc",
                dump_frontmatter(fm, rule.content),
            )
        return []
