from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from rulebridge.constants import MANIFEST_FILENAME, STORE_VERSION
from rulebridge.errors import RecordParseError
from rulebridge.utils import now_stamp, read_text, write_text


def _dump_toml_value(value: Any) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _dump_string_table(
    lines: list[str], table_name: str, values: dict[str, Optional[str]]
) -> None:
    lines.append(f"[{table_name}]")
    for key, value in values.items():
        if value is not None:
            lines.append(f"{key} = {_dump_toml_value(value)}")
    lines.append("")


@dataclass
class Manifest:
    version: str
    created_at: str
    remote_url: Optional[str] = None

    @classmethod
    def new(cls, remote_url: Optional[str] = None) -> "Manifest":
        return cls(version=STORE_VERSION, created_at=now_stamp(), remote_url=remote_url)

    @staticmethod
    def path_for(store_root: Path) -> Path:
        return store_root / MANIFEST_FILENAME

    @classmethod
    def exists(cls, store_root: Path) -> bool:
        return cls.path_for(store_root).is_file()

    @classmethod
    def load(cls, store_root: Path) -> "Manifest":
        path = cls.path_for(store_root)
        try:
            payload = tomllib.loads(read_text(path))
        except tomllib.TOMLDecodeError as exc:
            raise RecordParseError(path, str(exc)) from exc

        store = payload.get("store")
        if not isinstance(store, dict):
            raise RecordParseError(path, "missing [store] table")
        remote = payload.get("remote")
        if not isinstance(remote, dict):
            remote = {}
        url = remote.get("url")
        return cls(
            version=str(store.get("version", STORE_VERSION)),
            created_at=str(store.get("created_at", "")),
            remote_url=str(url) if url is not None else None,
        )

    def serialize(self) -> str:
        lines: list[str] = []
        _dump_string_table(
            lines, "store", {"version": self.version, "created_at": self.created_at}
        )
        _dump_string_table(lines, "remote", {"url": self.remote_url})
        return "\n".join(lines).strip() + "\n"

    def save(self, store_root: Path) -> None:
        write_text(self.path_for(store_root), self.serialize())
