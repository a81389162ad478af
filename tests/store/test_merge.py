"""Tests for rule reconciliation."""

from rulebridge.rules.models import Activation, Rule
from rulebridge.store.merge import incoming_wins, merge_rules

T1 = "2026-01-01T00:00:00+00:00"
T2 = "2026-01-02T00:00:00+00:00"


def test_newer_incoming_wins_with_one_warning() -> None:
    local = [Rule(id="1", content="x", name="a", updated_at=T1)]
    incoming = [Rule(id="1", content="y", name="a", updated_at=T2)]
    result = merge_rules(local, incoming)
    assert [rule.content for rule in result.merged] == ["y"]
    assert len(result.warnings) == 1
    assert "remote" in result.warnings[0]
    assert "'a'" in result.warnings[0]


def test_older_incoming_loses_with_one_warning() -> None:
    local = [Rule(id="1", content="x", updated_at=T2)]
    incoming = [Rule(id="1", content="y", updated_at=T1)]
    result = merge_rules(local, incoming)
    assert result.merged == local
    assert len(result.warnings) == 1
    assert "local" in result.warnings[0]


def test_identical_records_merge_silently() -> None:
    local = [Rule(id="1", content="x", updated_at=T1)]
    incoming = [Rule(id="1", content="x", updated_at=T2)]
    result = merge_rules(local, incoming)
    assert result.merged == local
    assert result.warnings == []


def test_activation_change_is_a_conflict() -> None:
    local = [Rule(id="1", content="x", updated_at=T1)]
    incoming = [
        Rule(id="1", content="x", activation=Activation.ON_DEMAND, updated_at=T2)
    ]
    result = merge_rules(local, incoming)
    assert result.merged[0].activation == Activation.ON_DEMAND
    assert len(result.warnings) == 1


def test_remote_only_and_unidentified_rules_are_appended() -> None:
    local = [Rule(id="1", content="x")]
    incoming = [Rule(id="2", content="remote"), Rule(content="fresh")]
    result = merge_rules(local, incoming)
    assert [rule.content for rule in result.merged] == ["x", "remote", "fresh"]
    assert result.warnings == []


def test_local_only_rules_are_kept() -> None:
    local = [Rule(id="1", content="x"), Rule(id="2", content="y")]
    result = merge_rules(local, [])
    assert result.merged == local


def test_timestamp_precedence() -> None:
    dated = Rule(id="1", content="a", updated_at=T1)
    undated = Rule(id="1", content="b")
    assert incoming_wins(undated, dated)
    assert not incoming_wins(dated, undated)
    assert not incoming_wins(undated, undated)
    assert not incoming_wins(dated, dated)


def test_timestamps_compare_as_instants() -> None:
    local = Rule(id="1", content="a", updated_at="2026-01-01T10:00:00+02:00")
    incoming = Rule(id="1", content="b", updated_at="2026-01-01T09:00:00Z")
    assert incoming_wins(local, incoming)
