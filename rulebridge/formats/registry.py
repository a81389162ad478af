"""Closed set of supported formats and their codecs."""

from __future__ import annotations

from enum import Enum

from rulebridge.errors import UnknownFormatError
from rulebridge.formats.antigravity import AntigravityParser, AntigravityWriter
from rulebridge.formats.base import IRuleParser, IRuleWriter
from rulebridge.formats.claude import ClaudeParser, ClaudeWriter
from rulebridge.formats.copilot import CopilotParser, CopilotWriter
from rulebridge.formats.cursor import CursorParser, CursorWriter
from rulebridge.formats.gemini import GeminiParser, GeminiWriter
from rulebridge.formats.windsurf import WindsurfParser, WindsurfWriter


class Format(str, Enum):
    CURSOR = "cursor"
    WINDSURF = "windsurf"
    COPILOT = "copilot"
    CLAUDE = "claude"
    GEMINI = "gemini"
    ANTIGRAVITY = "antigravity"

    @classmethod
    def from_name(cls, value: "str | Format") -> "Format":
        if isinstance(value, Format):
            return value
        normalized = value.strip().lower()
        fmt = FORMAT_ALIASES.get(normalized)
        if fmt is None:
            raise UnknownFormatError(value, [item.value for item in cls])
        return fmt

    @property
    def description(self) -> str:
        return FORMAT_DESCRIPTIONS[self]

    def parser(self) -> IRuleParser:
        return _CODECS[self][0]()

    def writer(self) -> IRuleWriter:
        return _CODECS[self][1]()


FORMAT_ALIASES: dict[str, Format] = {
    "cursor": Format.CURSOR,
    "windsurf": Format.WINDSURF,
    "copilot": Format.COPILOT,
    "github-copilot": Format.COPILOT,
    "ghcopilot": Format.COPILOT,
    "claude": Format.CLAUDE,
    "claude-code": Format.CLAUDE,
    "gemini": Format.GEMINI,
    "gemini-cli": Format.GEMINI,
    "antigravity": Format.ANTIGRAVITY,
    "google-antigravity": Format.ANTIGRAVITY,
}

FORMAT_DESCRIPTIONS: dict[Format, str] = {
    Format.CURSOR: "Cursor (.cursor/rules/*.mdc, YAML frontmatter)",
    Format.WINDSURF: "Windsurf (.windsurf/rules/*.md or global_rules.md)",
    Format.COPILOT: "GitHub Copilot (.github/copilot-instructions.md + .github/instructions/)",
    Format.CLAUDE: "Claude Code (CLAUDE.md + .claude/{rules,commands,skills,agents})",
    Format.GEMINI: "Gemini CLI (GEMINI.md)",
    Format.ANTIGRAVITY: "Google Antigravity (.agent/rules/*.md)",
}

_CODECS: dict[Format, tuple[type[IRuleParser], type[IRuleWriter]]] = {
    Format.CURSOR: (CursorParser, CursorWriter),
    Format.WINDSURF: (WindsurfParser, WindsurfWriter),
    Format.COPILOT: (CopilotParser, CopilotWriter),
    Format.CLAUDE: (ClaudeParser, ClaudeWriter),
    Format.GEMINI: (GeminiParser, GeminiWriter),
    Format.ANTIGRAVITY: (AntigravityParser, AntigravityWriter),
}
