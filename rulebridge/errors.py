from pathlib import Path
from typing import Iterable


class RulebridgeError(Exception):
    """Base user-facing application error."""


class RuleFileError(RulebridgeError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class RuleIOError(RuleFileError):
    def __init__(self, path: Path, cause: OSError) -> None:
        self.cause = cause
        detail = cause.strerror or str(cause)
        super().__init__(path=path, message=f"IO error ({detail})")


class RuleEncodingError(RuleFileError):
    def __init__(self, path: Path, cause: UnicodeDecodeError) -> None:
        self.cause = cause
        super().__init__(
            path=path, message=f"Not valid UTF-8 (byte {cause.start}: {cause.reason})"
        )


class FrontmatterParseError(RuleFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid frontmatter ({detail})")


class RecordParseError(RuleFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid store record ({detail})")


class WriteFailureError(RuleFileError):
    def __init__(self, path: Path, reason: str) -> None:
        self.reason = reason
        super().__init__(path=path, message=f"Cannot write ({reason})")


class UnknownFormatError(RulebridgeError):
    def __init__(self, name: str, choices: Iterable[str]) -> None:
        self.name = name
        self.choices = list(choices)
        super().__init__(
            f"Unknown format: '{name}'. Valid formats: {', '.join(self.choices)}"
        )


class UnknownScopeError(RulebridgeError):
    def __init__(self, name: str, choices: Iterable[str]) -> None:
        self.name = name
        self.choices = list(choices)
        super().__init__(
            f"Unknown scope: '{name}'. Valid scopes: {', '.join(self.choices)}"
        )


class StoreNotFoundError(RuleFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            path=path, message="Store not initialized (run `rulebridge init`)"
        )


class StoreLockedError(RuleFileError):
    def __init__(self, path: Path, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            path=path, message=f"Store is locked by another process ({timeout}s)"
        )


class VersionControlError(RulebridgeError):
    """Opaque passthrough of git's diagnostic output."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
