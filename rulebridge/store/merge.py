"""IR-level reconciliation of two rule collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from rulebridge.rules.models import Rule
from rulebridge.utils import parse_timestamp


@dataclass
class MergeResult:
    merged: list[Rule]
    warnings: list[str] = field(default_factory=list)


def incoming_wins(local: Rule, incoming: Rule) -> bool:
    """Last-write-wins; ties and missing timestamps keep the local copy."""
    local_ts: Optional[datetime] = parse_timestamp(local.updated_at)
    incoming_ts: Optional[datetime] = parse_timestamp(incoming.updated_at)
    if incoming_ts is None:
        return False
    if local_ts is None:
        return True
    return incoming_ts > local_ts


def merge_rules(local: list[Rule], incoming: list[Rule]) -> MergeResult:
    """Merge ``incoming`` into ``local`` by rule id.

    Rules without an id, or whose id is unknown locally, are appended.
    Matching rules with the same content, scope and activation are left
    alone; otherwise the whole record with the later ``updated_at`` wins and
    a warning is recorded. Rules only present locally are kept as they are.
    """
    merged = list(local)
    index_by_id = {rule.id: position for position, rule in enumerate(merged) if rule.id}
    warnings: list[str] = []

    for rule in incoming:
        if not rule.id:
            merged.append(rule)
            continue

        position = index_by_id.get(rule.id)
        if position is None:
            index_by_id[rule.id] = len(merged)
            merged.append(rule)
            continue

        current = merged[position]
        if current.same_body(rule):
            continue

        if incoming_wins(current, rule):
            warnings.append(
                f"conflict on rule '{rule.display_name()}': "
                "remote version is newer, keeping remote"
            )
            merged[position] = rule
        else:
            warnings.append(
                f"conflict on rule '{current.display_name()}': "
                "local version is newer or equal, keeping local"
            )

    return MergeResult(merged=merged, warnings=warnings)
