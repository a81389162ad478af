"""Durable, identity-stable persistence of rules, one YAML record per file."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

from rulebridge.constants import (
    GIT_DIRNAME,
    GITIGNORE_FILENAME,
    LEGACY_USER_NAMESPACE,
    LOCK_FILENAME,
    PROJECTS_NAMESPACE,
    RECORD_SUFFIX,
    STORE_RULES_DIRNAME,
    STORE_VERSION,
    USER_NAMESPACE,
)
from rulebridge.errors import (
    RuleIOError,
    StoreLockedError,
    StoreNotFoundError,
    WriteFailureError,
)
from rulebridge.rules.models import Rule, sanitize_filename
from rulebridge.store.locking import DEFAULT_LOCK_TIMEOUT, store_lock
from rulebridge.store.manifest import Manifest
from rulebridge.store.schema import dump_record, load_record
from rulebridge.utils import ensure_dir, now_stamp, read_text, sorted_children, write_text

if TYPE_CHECKING:
    from rulebridge.vcs import GitRepository

logger = logging.getLogger(__name__)

STAGING_SUFFIX = ".tmp"
RETIRED_SUFFIX = ".old"
GITIGNORE_ENTRIES = (LOCK_FILENAME, f".*{STAGING_SUFFIX}/", f".*{RETIRED_SUFFIX}/")


def _is_record(path: Path) -> bool:
    return path.is_file() and path.suffix == RECORD_SUFFIX and not path.name.startswith(".")


def _swap_namespace(name: str) -> Optional[str]:
    """Namespace a staging/retired directory belongs to, if it is one."""
    if not name.startswith("."):
        return None
    if not (name.endswith(STAGING_SUFFIX) or name.endswith(RETIRED_SUFFIX)):
        return None
    parts = name[1:].rsplit(".", 2)
    return parts[0] if len(parts) == 3 else None


def _rename(source: Path, target: Path) -> None:
    try:
        os.rename(source, target)
    except OSError as exc:
        raise RuleIOError(source, exc) from exc


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise RuleIOError(path, exc) from exc


class RuleStore:
    def __init__(
        self,
        root: Path,
        manifest: Manifest,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self._root = root
        self._manifest = manifest
        self._lock_timeout = lock_timeout

    @classmethod
    def open(
        cls,
        root: Path,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        repair: bool = True,
    ) -> "RuleStore":
        """Open an initialized store; never creates one.

        With ``repair``, leftovers of an interrupted write are cleaned up and
        the legacy user namespace is migrated, unless another process holds
        the store lock. ``repair=False`` leaves the directory untouched.
        """
        if not Manifest.exists(root):
            raise StoreNotFoundError(root)
        store = cls(root, Manifest.load(root), lock_timeout=lock_timeout)
        if repair:
            store._repair()
        return store

    @property
    def root(self) -> Path:
        return self._root

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def rules_root(self) -> Path:
        return self._root / STORE_RULES_DIRNAME

    def namespace_dir(self, namespace: str) -> Path:
        if (
            not namespace
            or namespace.startswith(".")
            or "/" in namespace
            or "\\" in namespace
        ):
            raise WriteFailureError(
                self.rules_root / namespace, f"invalid namespace name '{namespace}'"
            )
        return self.rules_root / namespace

    def load_rules(self, namespace: str) -> list[Rule]:
        """Read every record of ``namespace``; the first malformed one aborts."""
        directory = self.namespace_dir(namespace)
        if namespace == USER_NAMESPACE and not directory.exists():
            directory = self.rules_root / LEGACY_USER_NAMESPACE
        return [rule for _, rule in self._load_records(directory)]

    def save_rules(
        self, namespace: str, rules: list[Rule], source_format: str
    ) -> list[Rule]:
        """Replace the namespace's records with ``rules``.

        Names present in the previous set keep their ``id`` and
        ``created_at``; names absent from ``rules`` are deleted. Callers that
        want additive behaviour load, combine and save the full set.
        """
        with self._locked():
            existing = self.load_rules(namespace)
            now = now_stamp()
            by_name = {
                rule.name: rule for rule in existing if rule.id and rule.name is not None
            }
            by_stem = {
                rule.filename_stem(): rule
                for rule in existing
                if rule.id and rule.name is None
            }

            stored: list[Rule] = []
            used_ids: set[str] = set()
            for rule in rules:
                if rule.name is not None:
                    match = by_name.get(rule.name)
                else:
                    match = by_stem.get(rule.filename_stem())
                if match is not None and match.id not in used_ids:
                    rule_id, created_at = match.id, match.created_at or now
                else:
                    rule_id = rule.id if rule.id and rule.id not in used_ids else ""
                    rule_id, created_at = rule_id or str(uuid.uuid4()), now
                used_ids.add(rule_id)
                stored.append(
                    rule.evolve(
                        id=rule_id,
                        project=namespace,
                        source_format=source_format,
                        created_at=created_at,
                        updated_at=now,
                        store_version=STORE_VERSION,
                    )
                )

            self._replace_namespace(namespace, stored)
        logger.debug("saved %d rule(s) to namespace %s", len(stored), namespace)
        return stored

    def write_records(self, namespace: str, rules: list[Rule]) -> list[Rule]:
        """Replace the namespace with already-stamped records, as they are."""
        records = [
            rule.evolve(project=namespace) if rule.id else
            rule.evolve(id=str(uuid.uuid4()), project=namespace)
            for rule in rules
        ]
        with self._locked():
            self._replace_namespace(namespace, records)
        return records

    def list_projects(self) -> list[str]:
        return [
            child.name
            for child in sorted_children(self.rules_root)
            if child.is_dir() and not child.name.startswith(".")
        ]

    def rename_project(self, old_name: str, new_name: str) -> None:
        old_dir = self.namespace_dir(old_name)
        new_dir = self.namespace_dir(new_name)
        with self._locked():
            if not old_dir.is_dir():
                raise WriteFailureError(old_dir, "project not found")
            if new_dir.exists():
                raise WriteFailureError(new_dir, "target project already exists")
            _rename(old_dir, new_dir)
        logger.debug("renamed namespace %s to %s", old_name, new_name)

    def load_rule_by_name(self, namespace: str, name: str) -> Optional[Rule]:
        located = self._locate_rule(namespace, name)
        return located[1] if located is not None else None

    def find_rule_by_name(self, name: str) -> Optional[tuple[str, Rule]]:
        """Look up a reusable rule in ``projects`` first, then ``user``."""
        for namespace in (PROJECTS_NAMESPACE, USER_NAMESPACE):
            rule = self.load_rule_by_name(namespace, name)
            if rule is not None:
                return namespace, rule
        return None

    def save_rule_to_namespace(self, namespace: str, name: str, rule: Rule) -> Rule:
        namespace_dir = self.namespace_dir(namespace)
        target = namespace_dir / f"{sanitize_filename(name)}{RECORD_SUFFIX}"
        with self._locked():
            located = self._locate_rule(namespace, name)
            now = now_stamp()
            if located is not None:
                existing_path, existing = located
                rule_id, created_at = existing.id, existing.created_at or now
            else:
                existing_path = None
                rule_id, created_at = rule.id or str(uuid.uuid4()), now

            stored = rule.evolve(
                id=rule_id,
                name=rule.name if rule.name is not None else name,
                project=namespace,
                created_at=created_at,
                updated_at=now,
                store_version=STORE_VERSION,
            )
            ensure_dir(namespace_dir)
            self._write_atomic(target, dump_record(stored))
            if existing_path is not None and existing_path != target:
                existing_path.unlink()
        return stored

    def attach_remote(self, url: str) -> None:
        self._manifest.remote_url = url
        self._manifest.save(self._root)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with store_lock(self._root / LOCK_FILENAME, timeout=self._lock_timeout):
            yield

    def _load_records(self, directory: Path) -> list[tuple[Path, Rule]]:
        records: list[tuple[Path, Rule]] = []
        for path in sorted_children(directory):
            if _is_record(path):
                records.append((path, load_record(path, read_text(path))))
        return records

    def _locate_rule(self, namespace: str, name: str) -> Optional[tuple[Path, Rule]]:
        namespace_dir = self.namespace_dir(namespace)
        direct = namespace_dir / f"{sanitize_filename(name)}{RECORD_SUFFIX}"
        if direct.is_file():
            return direct, load_record(direct, read_text(direct))
        for path, rule in self._load_records(namespace_dir):
            if rule.name == name:
                return path, rule
        return None

    def _replace_namespace(self, namespace: str, rules: list[Rule]) -> None:
        """Build the new record set beside the namespace, then swap it in."""
        namespace_dir = self.namespace_dir(namespace)
        ensure_dir(self.rules_root)
        try:
            staging = Path(
                tempfile.mkdtemp(
                    prefix=f".{namespace}.", suffix=STAGING_SUFFIX, dir=self.rules_root
                )
            )
        except OSError as exc:
            raise RuleIOError(self.rules_root, exc) from exc

        try:
            for filename, rule in zip(self._record_filenames(rules), rules):
                write_text(staging / filename, dump_record(rule))

            if not namespace_dir.exists():
                _rename(staging, namespace_dir)
                return

            for child in sorted_children(namespace_dir):
                if _is_record(child):
                    continue
                if child.is_dir():
                    shutil.copytree(child, staging / child.name, symlinks=True)
                else:
                    shutil.copy2(child, staging / child.name)

            retired = self.rules_root / f".{namespace}.{uuid.uuid4().hex}{RETIRED_SUFFIX}"
            _rename(namespace_dir, retired)
            _rename(staging, namespace_dir)
            _remove_tree(retired)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    @staticmethod
    def _record_filenames(rules: list[Rule]) -> list[str]:
        used: set[str] = set()
        filenames: list[str] = []
        for rule in rules:
            stem = rule.filename_stem() or "rule"
            candidate, counter = stem, 2
            while candidate in used:
                candidate = f"{stem}-{counter}"
                counter += 1
            used.add(candidate)
            filenames.append(f"{candidate}{RECORD_SUFFIX}")
        return filenames

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        partial = path.with_name(f".{path.name}{STAGING_SUFFIX}")
        write_text(partial, text)
        try:
            os.replace(partial, path)
        except OSError as exc:
            raise RuleIOError(path, exc) from exc

    def _repair(self) -> None:
        try:
            with store_lock(self._root / LOCK_FILENAME, timeout=0):
                self._recover_interrupted_writes()
                self._migrate_legacy_user_namespace()
        except StoreLockedError:
            logger.debug("store %s is locked, skipping repair", self._root)

    def _recover_interrupted_writes(self) -> None:
        for child in sorted_children(self.rules_root):
            namespace = _swap_namespace(child.name)
            if namespace is None or not child.is_dir():
                continue
            target = self.rules_root / namespace
            if child.name.endswith(RETIRED_SUFFIX) and not target.exists():
                logger.warning("restoring namespace %s from an interrupted write", namespace)
                _rename(child, target)
            else:
                logger.debug("removing leftover %s", child)
                _remove_tree(child)

    def _migrate_legacy_user_namespace(self) -> None:
        legacy = self.rules_root / LEGACY_USER_NAMESPACE
        current = self.rules_root / USER_NAMESPACE
        if legacy.is_dir() and not current.exists():
            logger.info("migrating namespace %s to %s", LEGACY_USER_NAMESPACE, USER_NAMESPACE)
            _rename(legacy, current)


def init_store(
    root: Path,
    remote_url: Optional[str] = None,
    git: Optional["GitRepository"] = None,
) -> RuleStore:
    """Create (or adopt) a store at ``root`` and put it under git."""
    ensure_dir(root)
    if Manifest.exists(root):
        manifest = Manifest.load(root)
        if remote_url is not None and manifest.remote_url != remote_url:
            manifest.remote_url = remote_url
            manifest.save(root)
    else:
        Manifest.new(remote_url).save(root)

    gitignore = root / GITIGNORE_FILENAME
    if not gitignore.exists():
        write_text(gitignore, "\n".join(GITIGNORE_ENTRIES) + "\n")

    if not (root / GIT_DIRNAME).exists():
        if git is None:
            from rulebridge.vcs import GitRepository

            git = GitRepository(root)
        git.init()

    return RuleStore.open(root)
