import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from rulebridge.constants import DEFAULT_STORE_DIRNAME, STORE_ENV_VAR


@dataclass(frozen=True)
class RuntimeContext:
    """Home directory and environment, read once at the CLI edge."""

    home: Path
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environment(cls) -> "RuntimeContext":
        return cls(home=Path.home(), env=dict(os.environ))

    def expand(self, value: str | Path) -> Path:
        text = str(value)
        if text == "~":
            return self.home
        if text.startswith("~/"):
            return self.home / text[2:]
        return Path(text)

    def store_path(self, override: Optional[str | Path] = None) -> Path:
        if override:
            return self.expand(override)
        from_env = self.env.get(STORE_ENV_VAR, "").strip()
        if from_env:
            return self.expand(from_env)
        return self.home / DEFAULT_STORE_DIRNAME / "store"
