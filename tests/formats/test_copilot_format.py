"""Tests for the Copilot codec."""

from pathlib import Path

from rulebridge.formats.copilot import CopilotParser, CopilotWriter
from rulebridge.rules.models import Activation, Rule, Scope


def test_parse_main_instructions(tmp_path: Path, write_file) -> None:
    write_file(tmp_path / ".github" / "copilot-instructions.md", "Prefer tabs.\n")
    assert CopilotParser().parse(tmp_path) == [
        Rule(
            scope=Scope.PROJECT,
            activation=Activation.ALWAYS,
            name="copilot-instructions",
            content="Prefer tabs.",
        )
    ]


def test_parse_path_instructions(tmp_path: Path, write_file) -> None:
    instructions = tmp_path / ".github" / "instructions"
    write_file(
        instructions / "python.instructions.md",
        "---\nname: Python\ndescription: Python files\napplyTo: '**/*.py'\n---\n\nUse black.\n",
    )
    write_file(instructions / "general.instructions.md", "No frontmatter.\n")

    general, python = CopilotParser().parse(tmp_path)
    assert python == Rule(
        scope=Scope.PATH,
        activation=Activation.GLOB,
        globs=["**/*.py"],
        name="Python",
        description="Python files",
        content="Use black.",
    )
    assert general.scope == Scope.PATH
    assert general.activation == Activation.ALWAYS
    assert general.name == "general"
    assert general.globs is None


def test_parse_empty_root(tmp_path: Path) -> None:
    assert CopilotParser().parse(tmp_path) == []


def test_write_routes_by_globs(tmp_path: Path) -> None:
    rules = [
        Rule(content="Everywhere.", name="base"),
        Rule(
            content="Tests only.",
            name="tests",
            description="Test files",
            activation=Activation.GLOB,
            globs=["tests/**"],
        ),
    ]
    CopilotWriter().write(rules, tmp_path)

    github = tmp_path / ".github"
    assert (github / "copilot-instructions.md").read_text(encoding="utf-8") == (
        "Everywhere.\n"
    )
    assert (github / "instructions" / "tests.instructions.md").read_text(
        encoding="utf-8"
    ) == (
        "---\nname: tests\ndescription: Test files\napplyTo: tests/**\n---\n\n"
        "Tests only.\n"
    )


def test_write_joins_multiple_globs(tmp_path: Path) -> None:
    rule = Rule(
        content="Web.",
        name="web",
        activation=Activation.GLOB,
        globs=["*.ts", "*.tsx"],
    )
    CopilotWriter().write([rule], tmp_path)
    [parsed] = CopilotParser().parse(tmp_path)
    assert parsed.globs == ["*.ts,*.tsx"]


def test_glob_activation_without_globs_gets_its_own_file(tmp_path: Path) -> None:
    rules = [
        Rule(content="Main.", name="main"),
        Rule(content="Scoped.", name="scoped", activation=Activation.GLOB),
    ]
    CopilotWriter().write(rules, tmp_path)

    assert (tmp_path / ".github" / "copilot-instructions.md").read_text(
        encoding="utf-8"
    ) == "Main.\n"
    scoped = (tmp_path / ".github" / "instructions" / "scoped.instructions.md").read_text(
        encoding="utf-8"
    )
    assert scoped == "---\nname: scoped\n---\n\nScoped.\n"
