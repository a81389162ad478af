import sys
from pathlib import Path
from typing import Any, Optional

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()


class FakeGitRepository:
    """Records git calls instead of running git."""

    instances: list["FakeGitRepository"] = []

    def __init__(self, path: Path, *args: Any, **kwargs: Any) -> None:
        self.path = path
        self.calls: list[tuple[str, Optional[str]]] = []
        self.commits: list[str] = []
        self.remote_has_commits = True
        FakeGitRepository.instances.append(self)

    def init(self) -> None:
        self.calls.append(("init", None))
        (self.path / ".git").mkdir(parents=True, exist_ok=True)

    def clone(self, url: str) -> None:
        self.calls.append(("clone", url))
        (self.path / ".git").mkdir(parents=True, exist_ok=True)

    def commit(self, message: str) -> bool:
        self.calls.append(("commit", message))
        self.commits.append(message)
        return True

    def push(self) -> None:
        self.calls.append(("push", None))

    def pull(self) -> bool:
        self.calls.append(("pull", None))
        return self.remote_has_commits


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("RULEBRIDGE_STORE", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def write_file():
    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_git(monkeypatch) -> type[FakeGitRepository]:
    FakeGitRepository.instances = []
    monkeypatch.setattr("rulebridge.__main__.GitRepository", FakeGitRepository)
    monkeypatch.setattr("rulebridge.convert.GitRepository", FakeGitRepository)
    return FakeGitRepository


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / ".rulebridge" / "store"


@pytest.fixture
def store(store_root: Path):
    from rulebridge.store.repository import init_store

    return init_store(store_root, git=FakeGitRepository(store_root))


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()


@pytest.fixture
def initialized_store(cli_runner, fake_git, store_root: Path) -> Path:
    from rulebridge.__main__ import cli

    result = cli_runner.invoke(cli, ["init"])
    assert result.exit_code == 0, result.output
    return store_root
