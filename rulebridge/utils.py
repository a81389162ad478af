from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rulebridge.errors import RuleEncodingError, RuleIOError


def now_stamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def today_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleIOError(path, exc) from exc
    except UnicodeDecodeError as exc:
        raise RuleEncodingError(path, exc) from exc


def write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise RuleIOError(path, exc) from exc


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuleIOError(path, exc) from exc
    return path


def sorted_children(path: Path) -> list[Path]:
    if not path.is_dir():
        return []
    try:
        return sorted(path.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        raise RuleIOError(path, exc) from exc


def compact_home_path(path: str | Path, home: Optional[Path] = None) -> str:
    text = str(path)
    home_text = str(home or Path.home())
    if text == home_text:
        return "~"
    home_prefix = f"{home_text}/"
    if text.startswith(home_prefix):
        return f"~/{text[len(home_prefix):]}"
    return text
