"""Store record (de)serialization, validated against a JSON schema."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from rulebridge.errors import RecordParseError
from rulebridge.rules.models import Activation, Rule, Scope

_OPTIONAL_STRING = {"type": ["string", "null"]}

RULE_RECORD_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["scope", "activation", "content"],
    "properties": {
        "id": {"type": "string"},
        "project": _OPTIONAL_STRING,
        "source_format": _OPTIONAL_STRING,
        "created_at": _OPTIONAL_STRING,
        "updated_at": _OPTIONAL_STRING,
        "store_version": {"type": "string"},
        "scope": {"enum": [scope.value for scope in Scope]},
        "activation": {"enum": [activation.value for activation in Activation]},
        "globs": {"type": ["array", "null"], "items": {"type": "string"}},
        "name": _OPTIONAL_STRING,
        "description": _OPTIONAL_STRING,
        "content": {"type": "string"},
    },
}

_VALIDATOR = Draft202012Validator(RULE_RECORD_SCHEMA)
_TIMESTAMP_KEYS = ("created_at", "updated_at")


class _RecordDumper(yaml.SafeDumper):
    """Multi-line content as literal blocks keeps store diffs readable."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_RecordDumper.add_representer(str, _represent_str)


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


def rule_to_record(rule: Rule) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": rule.id,
        "project": rule.project,
        "source_format": rule.source_format,
        "created_at": rule.created_at,
        "updated_at": rule.updated_at,
        "store_version": rule.store_version,
        "scope": rule.scope.value,
        "activation": rule.activation.value,
    }
    if rule.globs is not None:
        record["globs"] = list(rule.globs)
    if rule.name is not None:
        record["name"] = rule.name
    if rule.description is not None:
        record["description"] = rule.description
    record["content"] = rule.content
    return {key: value for key, value in record.items() if value is not None}


def record_to_rule(record: dict[str, Any]) -> Rule:
    globs = record.get("globs")
    return Rule(
        content=record["content"],
        scope=Scope(record["scope"]),
        activation=Activation(record["activation"]),
        globs=list(globs) if globs is not None else None,
        name=record.get("name"),
        description=record.get("description"),
        id=record.get("id", ""),
        project=record.get("project"),
        source_format=record.get("source_format"),
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
        store_version=record.get("store_version", "1"),
    )


def dump_record(rule: Rule) -> str:
    return yaml.dump(
        rule_to_record(rule),
        Dumper=_RecordDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def load_record(path: Path, text: str) -> Rule:
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RecordParseError(path, str(exc).replace("\n", " ")) from exc
    if isinstance(payload, dict):
        for key in _TIMESTAMP_KEYS:
            value = payload.get(key)
            if isinstance(value, (datetime, date)):
                payload[key] = value.isoformat()
    error = next(iter(_VALIDATOR.iter_errors(payload)), None)
    if error is not None:
        raise RecordParseError(path, format_schema_error(error))
    return record_to_rule(payload)
