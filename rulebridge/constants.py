from typing import Final


STORE_VERSION: Final[str] = "1"
MANIFEST_FILENAME: Final[str] = "manifest.toml"
LOCK_FILENAME: Final[str] = ".lock"
GIT_DIRNAME: Final[str] = ".git"
GITIGNORE_FILENAME: Final[str] = ".gitignore"

STORE_RULES_DIRNAME: Final[str] = "rules"
RECORD_SUFFIX: Final[str] = ".yml"

USER_NAMESPACE: Final[str] = "user"
LEGACY_USER_NAMESPACE: Final[str] = "_user"
PROJECTS_NAMESPACE: Final[str] = "projects"

STORE_ENV_VAR: Final[str] = "RULEBRIDGE_STORE"
DEFAULT_STORE_DIRNAME: Final[str] = ".rulebridge"
DEFAULT_REMOTE_BRANCH: Final[str] = "main"

RULES_DIRNAME: Final[str] = "rules"
CLAUDE_FILENAME: Final[str] = "CLAUDE.md"
CLAUDE_DIRNAME: Final[str] = ".claude"
CLAUDE_SETTINGS_FILENAME: Final[str] = "settings.json"
SKILL_FILENAME: Final[str] = "SKILL.md"
GEMINI_FILENAME: Final[str] = "GEMINI.md"
WINDSURF_GLOBAL_FILENAME: Final[str] = "global_rules.md"
COPILOT_INSTRUCTIONS_FILENAME: Final[str] = "copilot-instructions.md"
COPILOT_INSTRUCTIONS_SUFFIX: Final[str] = ".instructions.md"

WINDSURF_FILE_CHAR_LIMIT: Final[int] = 6_000
WINDSURF_TOTAL_CHAR_LIMIT: Final[int] = 12_000
