"""Conversion flows: direct, store-mediated push/pull, and store reconciliation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rulebridge.constants import PROJECTS_NAMESPACE, USER_NAMESPACE
from rulebridge.errors import RulebridgeError
from rulebridge.formats.registry import Format
from rulebridge.rules.models import Activation, Rule, Scope, filter_by_scope
from rulebridge.store.merge import merge_rules
from rulebridge.store.repository import RuleStore
from rulebridge.utils import compact_home_path, today_stamp
from rulebridge.vcs import GitRepository

logger = logging.getLogger(__name__)

NO_RULES_WARNING = "no rules found"


@dataclass
class ConversionResult:
    rules: list[Rule]
    warnings: list[str] = field(default_factory=list)
    written: bool = False
    namespace: Optional[str] = None
    commit_message: Optional[str] = None


@dataclass(frozen=True)
class ProjectSummary:
    name: str
    rule_count: int

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "rules": str(self.rule_count)}


def resolve_namespace(project: Optional[str], scope: Optional[Scope]) -> str:
    """User-scope rules, and rules with no project, live in ``user``."""
    if scope == Scope.USER or not project:
        return USER_NAMESPACE
    return project


class ConversionService:
    def __init__(
        self,
        store: Optional[RuleStore] = None,
        git: Optional[GitRepository] = None,
    ) -> None:
        self._store = store
        if git is None and store is not None:
            git = GitRepository(store.root)
        self._git = git

    @property
    def store(self) -> RuleStore:
        if self._store is None:
            raise RulebridgeError("This operation needs an initialized store.")
        return self._store

    @property
    def git(self) -> GitRepository:
        if self._git is None:
            raise RulebridgeError("This operation needs a git-backed store.")
        return self._git

    def convert(
        self,
        source: str | Format,
        target: str | Format,
        input_root: Path,
        output_root: Path,
        scope: Optional[Scope] = None,
        dry_run: bool = False,
    ) -> ConversionResult:
        source_format = Format.from_name(source)
        target_format = Format.from_name(target)
        rules = self._parse(source_format, input_root, scope)
        if not rules:
            return self._empty(f"in {compact_home_path(input_root)}")
        if dry_run:
            return ConversionResult(rules=rules)
        warnings = target_format.writer().write(rules, output_root)
        return ConversionResult(rules=rules, warnings=warnings, written=True)

    def push(
        self,
        fmt: str | Format,
        input_root: Path,
        project: Optional[str] = None,
        scope: Optional[Scope] = None,
        dry_run: bool = False,
    ) -> ConversionResult:
        source_format = Format.from_name(fmt)
        namespace = resolve_namespace(project, scope)
        rules = self._parse(source_format, input_root, scope)
        if not rules:
            return self._empty(f"in {compact_home_path(input_root)}", namespace)
        if dry_run:
            return ConversionResult(rules=rules, namespace=namespace)

        stored = self.store.save_rules(namespace, rules, source_format.value)
        message = f"push-format from {source_format.value} ({today_stamp()})"
        return ConversionResult(
            rules=stored,
            written=True,
            namespace=namespace,
            commit_message=self._commit(message),
        )

    def pull(
        self,
        fmt: str | Format,
        output_root: Path,
        project: Optional[str] = None,
        scope: Optional[Scope] = None,
        dry_run: bool = False,
    ) -> ConversionResult:
        target_format = Format.from_name(fmt)
        namespace = resolve_namespace(project, scope)
        rules = filter_by_scope(self.store.load_rules(namespace), scope)
        if not rules:
            return self._empty(f"in store namespace '{namespace}'", namespace)
        if dry_run:
            return ConversionResult(rules=rules, namespace=namespace)
        warnings = target_format.writer().write(rules, output_root)
        return ConversionResult(
            rules=rules, warnings=warnings, written=True, namespace=namespace
        )

    def convert_via_store(
        self,
        source: str | Format,
        target: str | Format,
        input_root: Path,
        output_root: Path,
        project: Optional[str] = None,
        scope: Optional[Scope] = None,
        dry_run: bool = False,
    ) -> ConversionResult:
        """Persist the parsed rules, then write the stored set as ``target``."""
        source_format = Format.from_name(source)
        target_format = Format.from_name(target)
        namespace = resolve_namespace(project, scope)
        rules = self._parse(source_format, input_root, scope)
        if not rules:
            return self._empty(f"in {compact_home_path(input_root)}", namespace)
        if dry_run:
            return ConversionResult(rules=rules, namespace=namespace)

        stored = self.store.save_rules(namespace, rules, source_format.value)
        message = f"convert from {source_format.value} ({today_stamp()})"
        commit_message = self._commit(message)
        warnings = target_format.writer().write(stored, output_root)
        return ConversionResult(
            rules=stored,
            warnings=warnings,
            written=True,
            namespace=namespace,
            commit_message=commit_message,
        )

    def push_store(self) -> ConversionResult:
        self.git.push()
        return ConversionResult(rules=[], written=True)

    def pull_store(self) -> ConversionResult:
        """Fast-forward the store from its remote; git's merge is authoritative."""
        if not self.git.pull():
            return ConversionResult(
                rules=[], warnings=["remote has no commits yet, nothing to pull"]
            )
        return ConversionResult(rules=[], written=True)

    def merge_store(
        self,
        other_root: Path,
        project: Optional[str] = None,
        scope: Optional[Scope] = None,
        dry_run: bool = False,
    ) -> ConversionResult:
        """Reconcile one namespace of another store into this one, by rule id."""
        namespace = resolve_namespace(project, scope)
        other = RuleStore.open(other_root, repair=False)
        local = self.store.load_rules(namespace)
        incoming = other.load_rules(namespace)
        result = merge_rules(local, incoming)
        for warning in result.warnings:
            logger.warning(warning)
        if not result.merged:
            return self._empty(f"in store namespace '{namespace}'", namespace)
        if dry_run:
            return ConversionResult(
                rules=result.merged, warnings=result.warnings, namespace=namespace
            )

        merged = self.store.write_records(namespace, result.merged)
        message = (
            f"merge-store from {compact_home_path(other_root)} ({today_stamp()})"
        )
        return ConversionResult(
            rules=merged,
            warnings=result.warnings,
            written=True,
            namespace=namespace,
            commit_message=self._commit(message),
        )

    def list_projects(self) -> list[ProjectSummary]:
        return [
            ProjectSummary(name=name, rule_count=len(self.store.load_rules(name)))
            for name in self.store.list_projects()
        ]

    def rename_project(self, old_name: str, new_name: str) -> Optional[str]:
        self.store.rename_project(old_name, new_name)
        return self._commit(f"rename project {old_name} -> {new_name}")

    def find_rule(
        self, name: str, namespace: Optional[str] = None
    ) -> Optional[tuple[str, Rule]]:
        if namespace is None:
            return self.store.find_rule_by_name(name)
        rule = self.store.load_rule_by_name(namespace, name)
        return (namespace, rule) if rule is not None else None

    def save_rule(
        self,
        name: str,
        content: str,
        namespace: str = PROJECTS_NAMESPACE,
        description: Optional[str] = None,
        activation: Activation = Activation.ALWAYS,
        globs: Optional[list[str]] = None,
    ) -> ConversionResult:
        scope = Scope.USER if namespace == USER_NAMESPACE else Scope.PROJECT
        rule = Rule(
            content=content.rstrip(),
            scope=scope,
            activation=activation,
            globs=globs or None,
            name=name,
            description=description,
        )
        stored = self.store.save_rule_to_namespace(namespace, name, rule)
        return ConversionResult(
            rules=[stored],
            written=True,
            namespace=namespace,
            commit_message=self._commit(f"save rule {name} to {namespace}"),
        )

    def _parse(self, fmt: Format, root: Path, scope: Optional[Scope]) -> list[Rule]:
        rules = fmt.parser().parse(root)
        logger.debug("parsed %d %s rule(s) from %s", len(rules), fmt.value, root)
        return filter_by_scope(rules, scope)

    def _commit(self, message: str) -> Optional[str]:
        if self._git is None:
            return None
        if not self._git.commit(message):
            return None
        logger.debug("committed store change: %s", message)
        return message

    @staticmethod
    def _empty(where: str, namespace: Optional[str] = None) -> ConversionResult:
        warning = f"{NO_RULES_WARNING} {where}"
        logger.warning(warning)
        return ConversionResult(rules=[], warnings=[warning], namespace=namespace)
