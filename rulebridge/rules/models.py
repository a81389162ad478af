"""Rule data models (the intermediate representation shared by every format)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from rulebridge.constants import STORE_VERSION
from rulebridge.errors import UnknownScopeError


class Scope(str, Enum):
    USER = "user"
    PROJECT = "project"
    PATH = "path"


class Activation(str, Enum):
    ALWAYS = "always"
    GLOB = "glob"
    ON_DEMAND = "on_demand"
    AI_DECIDES = "ai_decides"


_FNV_OFFSET = 2_166_136_261
_FNV_PRIME = 16_777_619


def fnv1a(data: bytes) -> int:
    acc = _FNV_OFFSET
    for byte in data:
        acc = (acc * _FNV_PRIME + byte) & 0xFFFFFFFF
    return acc


def sanitize_filename(name: str) -> str:
    chars: list[str] = []
    for char in name:
        if char.isalnum() or char in "-_":
            chars.append(char)
        elif char == " ":
            chars.append("-")
        else:
            chars.append("_")
    return "".join(chars).lower()


def parse_scope(value: str) -> Scope:
    try:
        return Scope(value.lower())
    except ValueError:
        raise UnknownScopeError(value, [scope.value for scope in Scope]) from None


@dataclass(frozen=True)
class Rule:
    """One configuration directive.

    Codecs only read and write the first six fields. The remaining fields are
    store metadata, filled in the first time a rule is persisted.
    """

    content: str = ""
    scope: Scope = Scope.PROJECT
    activation: Activation = Activation.ALWAYS
    globs: Optional[list[str]] = None
    name: Optional[str] = None
    description: Optional[str] = None

    id: str = ""
    project: Optional[str] = None
    source_format: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    store_version: str = STORE_VERSION

    def filename_stem(self) -> str:
        if self.name is not None:
            return sanitize_filename(self.name)
        return f"rule_{fnv1a(self.content.encode('utf-8')):08x}"

    def display_name(self) -> str:
        return self.name or self.id or self.filename_stem()

    def without_store_metadata(self) -> "Rule":
        return Rule(
            content=self.content,
            scope=self.scope,
            activation=self.activation,
            globs=list(self.globs) if self.globs is not None else None,
            name=self.name,
            description=self.description,
        )

    def same_body(self, other: "Rule") -> bool:
        return (
            self.content == other.content
            and self.scope == other.scope
            and self.activation == other.activation
        )

    def evolve(self, **changes) -> "Rule":
        return replace(self, **changes)


def filter_by_scope(rules: list[Rule], scope: Optional[Scope]) -> list[Rule]:
    if scope is None:
        return list(rules)
    return [rule for rule in rules if rule.scope == scope]
