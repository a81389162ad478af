"""Tests for the format registry."""

import pytest

from rulebridge.errors import UnknownFormatError
from rulebridge.formats import Format, IRuleParser, IRuleWriter


@pytest.mark.parametrize("fmt", list(Format))
def test_every_format_resolves_to_a_codec(fmt: Format) -> None:
    assert isinstance(fmt.parser(), IRuleParser)
    assert isinstance(fmt.writer(), IRuleWriter)
    assert fmt.description


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("cursor", Format.CURSOR),
        ("Claude-Code", Format.CLAUDE),
        ("github-copilot", Format.COPILOT),
        (" gemini-cli ", Format.GEMINI),
        ("antigravity", Format.ANTIGRAVITY),
    ],
)
def test_from_name_accepts_aliases(name: str, expected: Format) -> None:
    assert Format.from_name(name) == expected


def test_from_name_passes_format_through() -> None:
    assert Format.from_name(Format.WINDSURF) is Format.WINDSURF


def test_unknown_format_lists_valid_choices() -> None:
    with pytest.raises(UnknownFormatError) as excinfo:
        Format.from_name("vscode")
    message = str(excinfo.value)
    assert "vscode" in message
    for fmt in Format:
        assert fmt.value in message
