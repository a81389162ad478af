"""Write, parse, write again: the second write must reproduce the first."""

from pathlib import Path

import pytest

from rulebridge.formats import Format
from rulebridge.rules.models import Activation, Rule, Scope


def _snapshot(root: Path) -> dict[str, str]:
    return {
        str(path.relative_to(root)): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


SAMPLE_RULES: dict[Format, list[Rule]] = {
    Format.CURSOR: [
        Rule(content="Always.", name="base"),
        Rule(
            content="Strict TS.",
            name="ts",
            description="TypeScript",
            activation=Activation.GLOB,
            globs=["*.ts", "*.tsx"],
        ),
        Rule(content="Review.", name="review", description="On review", activation=Activation.AI_DECIDES),
        Rule(content="Manual.", name="manual", activation=Activation.ON_DEMAND),
    ],
    Format.WINDSURF: [
        Rule(content="One.", name="one"),
        Rule(content="Two.", name="two"),
    ],
    Format.COPILOT: [
        Rule(content="Repo wide.", name="copilot-instructions"),
        Rule(
            content="Tests.",
            name="tests",
            description="Test files",
            scope=Scope.PATH,
            activation=Activation.GLOB,
            globs=["tests/**"],
        ),
    ],
    Format.CLAUDE: [
        Rule(content="Memory.", name="claude"),
        Rule(content="Style.", name="style"),
        Rule(content="Deploy.", name="deploy", activation=Activation.ON_DEMAND),
        Rule(content="Skill.", name="skill", activation=Activation.AI_DECIDES),
        Rule(content='```json\n{"model": "x"}\n```', name="settings"),
    ],
    Format.GEMINI: [
        Rule(content="First.", name="first"),
        Rule(content="Second.", name="second"),
    ],
    Format.ANTIGRAVITY: [
        Rule(content="A.", name="a"),
        Rule(content="B.", name="b"),
    ],
}


@pytest.mark.parametrize("fmt", list(Format))
def test_write_parse_write_is_a_fixpoint(tmp_path: Path, fmt: Format) -> None:
    first, second = tmp_path / "first", tmp_path / "second"
    fmt.writer().write(SAMPLE_RULES[fmt], first)
    parsed = fmt.parser().parse(first)
    assert parsed
    fmt.writer().write(parsed, second)
    assert _snapshot(second) == _snapshot(first)


@pytest.mark.parametrize(
    "fmt", [Format.CURSOR, Format.WINDSURF, Format.COPILOT, Format.ANTIGRAVITY]
)
def test_per_file_formats_reproduce_rules(tmp_path: Path, fmt: Format) -> None:
    fmt.writer().write(SAMPLE_RULES[fmt], tmp_path)
    parsed = fmt.parser().parse(tmp_path)
    by_name = {rule.name: rule for rule in parsed}
    for rule in SAMPLE_RULES[fmt]:
        assert by_name[rule.name].content == rule.content
        if fmt == Format.CURSOR:
            assert by_name[rule.name] == rule


def test_cross_format_keeps_content(tmp_path: Path, write_file) -> None:
    write_file(
        tmp_path / "src" / ".cursor" / "rules" / "a.mdc",
        '---\ndescription: "a"\nglobs: "*.ts"\n---\nUse strict mode.\n',
    )
    rules = Format.CURSOR.parser().parse(tmp_path / "src")
    Format.GEMINI.writer().write(rules, tmp_path / "out")
    assert (tmp_path / "out" / "GEMINI.md").read_text(encoding="utf-8") == (
        "Use strict mode.\n"
    )
