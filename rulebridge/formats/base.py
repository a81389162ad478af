"""Parser/writer interfaces and helpers shared by the format codecs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator

from rulebridge.rules.models import Activation, Rule, Scope
from rulebridge.utils import ensure_dir, read_text, sorted_children, write_text

logger = logging.getLogger(__name__)


class IRuleParser(ABC):
    @abstractmethod
    def parse(self, root: Path) -> list[Rule]:
        """Read the tool's files under ``root`` into rules. Never writes."""


class IRuleWriter(ABC):
    @abstractmethod
    def write(self, rules: list[Rule], target: Path) -> list[str]:
        """Write ``rules`` under ``target``; return advisory warnings."""


def iter_files(directory: Path, suffix: str) -> Iterator[Path]:
    for child in sorted_children(directory):
        if child.is_file() and child.name.endswith(suffix):
            yield child


def read_body(path: Path) -> str:
    logger.debug("reading %s", path)
    return read_text(path).rstrip()


def render_body(content: str) -> str:
    return content.rstrip() + "\n"


def write_body(path: Path, content: str) -> None:
    logger.debug("writing %s", path)
    write_text(path, content)


def join_rules(rules: list[Rule]) -> str:
    """Concatenate rules into one markdown document.

    A single rule is emitted verbatim; several are separated under
    ``## <name>`` headers.
    """
    if len(rules) == 1:
        return render_body(rules[0].content)
    sections = [
        f"## {rule.name or 'Rule'}\n\n{render_body(rule.content)}" for rule in rules
    ]
    return "\n".join(sections)


def parse_markdown_dir(
    directory: Path,
    scope: Scope,
    activation: Activation,
    skip_blank: bool = False,
) -> list[Rule]:
    rules: list[Rule] = []
    for path in iter_files(directory, ".md"):
        content = read_body(path)
        if skip_blank and not content.strip():
            continue
        rules.append(
            Rule(scope=scope, activation=activation, name=path.stem, content=content)
        )
    return rules


def write_markdown_dir(directory: Path, rules: Iterable[Rule]) -> None:
    ensure_dir(directory)
    for rule in rules:
        write_body(directory / f"{rule.filename_stem()}.md", render_body(rule.content))
