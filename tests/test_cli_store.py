"""Tests for store initialization and store-mediated commands."""

from pathlib import Path

from rulebridge.__main__ import cli
from rulebridge.store.manifest import Manifest
from rulebridge.store.repository import RuleStore


def _cursor_rules(root: Path, write_file) -> Path:
    write_file(
        root / ".cursor" / "rules" / "style.mdc",
        "---\nalwaysApply: true\n---\nPrefer small functions.\n",
    )
    write_file(
        root / ".cursor" / "rules" / "tests.mdc",
        '---\ndescription: "Testing"\nglobs: "tests/**/*.py"\n---\nUse pytest.\n',
    )
    return root


def test_init_creates_store(cli_runner, fake_git, store_root: Path) -> None:
    result = cli_runner.invoke(cli, ["init"])

    assert result.exit_code == 0, result.output
    assert "Store ready at" in result.output
    assert (store_root / "manifest.toml").is_file()
    assert ("init", None) in fake_git.instances[0].calls


def test_init_with_remote_clones(cli_runner, fake_git, store_root: Path) -> None:
    url = "https://example.com/me/rules.git"
    result = cli_runner.invoke(cli, ["init", "--repo", url])

    assert result.exit_code == 0, result.output
    assert fake_git.instances[0].calls == [("clone", url)]
    assert Manifest.load(store_root).remote_url == url


def test_store_option_overrides_location(tmp_path: Path, cli_runner, fake_git) -> None:
    custom = tmp_path / "elsewhere"
    result = cli_runner.invoke(cli, ["--store", str(custom), "init"])
    assert result.exit_code == 0, result.output
    assert (custom / "manifest.toml").is_file()


def test_store_env_variable(tmp_path: Path, cli_runner, fake_git) -> None:
    custom = tmp_path / "from-env"
    result = cli_runner.invoke(cli, ["init"], env={"RULEBRIDGE_STORE": str(custom)})
    assert result.exit_code == 0, result.output
    assert (custom / "manifest.toml").is_file()


def test_push_then_pull_format(
    tmp_path: Path, write_file, cli_runner, fake_git, initialized_store: Path
) -> None:
    src = _cursor_rules(tmp_path / "src", write_file)

    pushed = cli_runner.invoke(
        cli, ["push-format", "--format", "cursor", "--input", str(src), "--project", "demo"]
    )
    assert pushed.exit_code == 0, pushed.output
    stored = RuleStore.open(initialized_store).load_rules("demo")
    assert sorted(rule.name for rule in stored) == ["style", "tests"]
    assert all(rule.source_format == "cursor" for rule in stored)
    assert any(
        message.startswith("push-format from cursor")
        for instance in fake_git.instances
        for message in instance.commits
    )

    out = tmp_path / "out"
    pulled = cli_runner.invoke(
        cli, ["pull-format", "--format", "copilot", "--output", str(out), "--project", "demo"]
    )
    assert pulled.exit_code == 0, pulled.output
    assert (out / ".github" / "copilot-instructions.md").read_text(
        encoding="utf-8"
    ) == "Prefer small functions.\n"
    assert (out / ".github" / "instructions" / "tests.instructions.md").is_file()


def test_push_without_project_goes_to_user(
    tmp_path: Path, write_file, cli_runner, fake_git, initialized_store: Path
) -> None:
    src = _cursor_rules(tmp_path / "src", write_file)
    result = cli_runner.invoke(cli, ["push-format", "--format", "cursor", "--input", str(src)])
    assert result.exit_code == 0, result.output
    assert RuleStore.open(initialized_store).list_projects() == ["user"]


def test_push_dry_run_leaves_store_untouched(
    tmp_path: Path, write_file, cli_runner, fake_git, initialized_store: Path
) -> None:
    src = _cursor_rules(tmp_path / "src", write_file)
    result = cli_runner.invoke(
        cli,
        ["push-format", "--format", "cursor", "--input", str(src), "--project", "demo", "--dry-run"],
    )
    assert result.exit_code == 0, result.output
    assert RuleStore.open(initialized_store).list_projects() == []


def test_pull_from_empty_namespace_warns(cli_runner, fake_git, initialized_store: Path, tmp_path: Path) -> None:
    result = cli_runner.invoke(
        cli, ["pull-format", "--format", "gemini", "--output", str(tmp_path / "out"), "--project", "nope"]
    )
    assert result.exit_code == 0
    assert "no rules found" in result.output
    assert not (tmp_path / "out").exists()


def test_store_commands_require_init(cli_runner, fake_git, tmp_path: Path) -> None:
    result = cli_runner.invoke(
        cli, ["pull-format", "--format", "gemini", "--output", str(tmp_path)]
    )
    assert result.exit_code != 0
    assert "Store not initialized" in result.output


def test_convert_via_store_persists_and_writes(
    tmp_path: Path, write_file, cli_runner, fake_git, initialized_store: Path
) -> None:
    src = _cursor_rules(tmp_path / "src", write_file)
    out = tmp_path / "out"
    result = cli_runner.invoke(
        cli,
        [
            "convert", "--from", "cursor", "--to", "antigravity", "--via-store",
            "--input", str(src), "--output", str(out), "--project", "demo",
        ],
    )
    assert result.exit_code == 0, result.output
    assert len(RuleStore.open(initialized_store).load_rules("demo")) == 2
    assert sorted(path.name for path in (out / ".agent" / "rules").iterdir()) == [
        "style.md",
        "tests.md",
    ]


def test_push_and_pull_store(cli_runner, fake_git, initialized_store: Path) -> None:
    pushed = cli_runner.invoke(cli, ["push-store"])
    assert pushed.exit_code == 0, pushed.output
    assert "Store pushed" in pushed.output

    pulled = cli_runner.invoke(cli, ["pull-store"])
    assert pulled.exit_code == 0, pulled.output
    assert "Store pulled" in pulled.output

    calls = [call for instance in fake_git.instances for call in instance.calls]
    assert ("push", None) in calls
    assert ("pull", None) in calls


def test_pull_store_from_empty_remote(
    cli_runner, fake_git, initialized_store: Path, monkeypatch
) -> None:
    monkeypatch.setattr(fake_git, "pull", lambda self: False)
    result = cli_runner.invoke(cli, ["pull-store"])
    assert result.exit_code == 0, result.output
    assert "remote has no commits yet" in result.output


def test_merge_store_takes_newer_rules(
    tmp_path: Path, cli_runner, fake_git, initialized_store: Path
) -> None:
    from rulebridge.rules.models import Rule
    from rulebridge.store.repository import init_store

    local = RuleStore.open(initialized_store)
    [mine] = local.save_rules("demo", [Rule(content="old", name="a")], "cursor")

    other_root = tmp_path / "other-store"
    other = init_store(other_root, git=fake_git(other_root))
    other.write_records(
        "demo",
        [
            Rule(
                content="new",
                name="a",
                id=mine.id,
                created_at=mine.created_at,
                updated_at="2999-01-01T00:00:00+00:00",
            ),
            Rule(content="extra", name="b"),
        ],
    )

    result = cli_runner.invoke(cli, ["merge-store", str(other_root), "--project", "demo"])

    assert result.exit_code == 0, result.output
    merged = {rule.name: rule for rule in RuleStore.open(initialized_store).load_rules("demo")}
    assert merged["a"].content == "new"
    assert merged["a"].id == mine.id
    assert merged["b"].content == "extra"


def test_merge_store_missing_other(cli_runner, fake_git, initialized_store: Path, tmp_path: Path) -> None:
    result = cli_runner.invoke(cli, ["merge-store", str(tmp_path / "ghost")])
    assert result.exit_code != 0
    assert "Store not initialized" in result.output


def test_convert_with_project_goes_through_store(
    tmp_path: Path, write_file, cli_runner, fake_git, initialized_store: Path
) -> None:
    src = _cursor_rules(tmp_path / "src", write_file)
    out = tmp_path / "out"
    result = cli_runner.invoke(
        cli,
        [
            "convert", "--from", "cursor", "--to", "antigravity",
            "--input", str(src), "--output", str(out), "--project", "demo",
        ],
    )
    assert result.exit_code == 0, result.output
    assert len(RuleStore.open(initialized_store).load_rules("demo")) == 2
    assert (out / ".agent" / "rules" / "style.md").is_file()
    assert any(
        message.startswith("convert from cursor")
        for instance in fake_git.instances
        for message in instance.commits
    )
