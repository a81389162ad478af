import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from rulebridge.constants import PROJECTS_NAMESPACE, USER_NAMESPACE
from rulebridge.context import RuntimeContext
from rulebridge.convert import ConversionService
from rulebridge.errors import RulebridgeError
from rulebridge.formats.registry import FORMAT_ALIASES, Format
from rulebridge.rules.models import Activation, Scope, parse_scope
from rulebridge.store.repository import RuleStore, init_store
from rulebridge.tui.renderers import RuleConsoleUI
from rulebridge.utils import compact_home_path, read_text
from rulebridge.vcs import GitRepository


SCOPE_VALUES = [scope.value for scope in Scope]
ACTIVATION_VALUES = [activation.value for activation in Activation]


def _scope_option() -> Callable:
    return click.option(
        "--scope",
        default=None,
        help=f"Only keep rules of this scope ({', '.join(SCOPE_VALUES)}).",
    )


def _project_option() -> Callable:
    return click.option(
        "--project",
        default=None,
        help="Store namespace; user-scope rules always go to 'user'.",
    )


def _dry_run_option() -> Callable:
    return click.option(
        "--dry-run", is_flag=True, default=False, help="Preview without writing."
    )


def _format_help() -> str:
    return f"One of: {', '.join(fmt.value for fmt in Format)} (aliases: {', '.join(sorted(FORMAT_ALIASES))})."


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("rulebridge")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True), show_path=False, show_time=verbose
    )
    handler.setLevel(logging.DEBUG if verbose else logging.ERROR)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except RulebridgeError as exc:
        raise click.ClickException(str(exc)) from exc


def _runtime(obj: Dict[str, Any]) -> RuntimeContext:
    return obj["runtime"]


def _store_path(obj: Dict[str, Any]) -> Path:
    return _runtime(obj).store_path(obj.get("store"))


def _service(obj: Dict[str, Any]) -> ConversionService:
    store = RuleStore.open(_store_path(obj))
    return ConversionService(store=store, git=GitRepository(store.root))


def _scope(value: Optional[str]) -> Optional[Scope]:
    return parse_scope(value) if value is not None else None


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--store",
    "store",
    default=None,
    help="Store directory (default: $RULEBRIDGE_STORE or ~/.rulebridge/store).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, store: Optional[str], verbose: bool) -> None:
    """Convert AI assistant rules between tools, via an optional git store."""
    _configure_logging(verbose)
    ctx.obj = {
        "runtime": RuntimeContext.from_environment(),
        "store": store,
        "verbose": verbose,
    }


@cli.command("list-formats", help="List supported formats.")
def list_formats() -> None:
    RuleConsoleUI(Console()).render_formats()


@cli.command(help="Convert rules from one format to another.")
@click.option("--from", "source", required=True, help=_format_help())
@click.option("--to", "target", required=True, help=_format_help())
@click.option(
    "--input",
    "input_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@click.option(
    "--output",
    "output_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@click.option(
    "--via-store",
    is_flag=True,
    default=False,
    help="Persist the rules to the store and write the stored set (implied by --project).",
)
@_project_option()
@_scope_option()
@_dry_run_option()
@click.pass_obj
def convert(
    obj: Dict[str, Any],
    source: str,
    target: str,
    input_root: Path,
    output_root: Path,
    via_store: bool,
    project: Optional[str],
    scope: Optional[str],
    dry_run: bool,
) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        if via_store or project:
            result = _service(obj).convert_via_store(
                source,
                target,
                input_root,
                output_root,
                project=project,
                scope=_scope(scope),
                dry_run=dry_run,
            )
        else:
            result = ConversionService().convert(
                source,
                target,
                input_root,
                output_root,
                scope=_scope(scope),
                dry_run=dry_run,
            )
        mode = f"convert:{Format.from_name(source).value}->{Format.from_name(target).value}"
    ui.render_conversion(
        result,
        mode=mode,
        destination=compact_home_path(output_root.resolve()),
        dry_run=dry_run,
        verbose=obj["verbose"],
    )


@cli.command(help="Initialize the store, optionally from a remote repository.")
@click.option("--repo", default=None, help="Clone this git remote as the store.")
@click.pass_obj
def init(obj: Dict[str, Any], repo: Optional[str]) -> None:
    ui = RuleConsoleUI(Console())
    root = _store_path(obj)
    git = GitRepository(root)
    with _domain_errors():
        if repo:
            git.clone(repo)
        store = init_store(root, remote_url=repo, git=git)
    ui.render_store_ready(store.root, store.manifest.remote_url)


@cli.command("push-format", help="Parse a format and save its rules to the store.")
@click.option("--format", "fmt", required=True, help=_format_help())
@click.option(
    "--input",
    "input_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@_project_option()
@_scope_option()
@_dry_run_option()
@click.pass_obj
def push_format(
    obj: Dict[str, Any],
    fmt: str,
    input_root: Path,
    project: Optional[str],
    scope: Optional[str],
    dry_run: bool,
) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        service = _service(obj)
        result = service.push(
            fmt, input_root, project=project, scope=_scope(scope), dry_run=dry_run
        )
        mode = f"push-format:{Format.from_name(fmt).value}"
    ui.render_conversion(
        result,
        mode=mode,
        destination=f"store/{result.namespace}",
        dry_run=dry_run,
        verbose=obj["verbose"],
    )


@cli.command("pull-format", help="Write stored rules out in a format.")
@click.option("--format", "fmt", required=True, help=_format_help())
@click.option(
    "--output",
    "output_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@_project_option()
@_scope_option()
@_dry_run_option()
@click.pass_obj
def pull_format(
    obj: Dict[str, Any],
    fmt: str,
    output_root: Path,
    project: Optional[str],
    scope: Optional[str],
    dry_run: bool,
) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        result = _service(obj).pull(
            fmt, output_root, project=project, scope=_scope(scope), dry_run=dry_run
        )
        mode = f"pull-format:{Format.from_name(fmt).value}"
    ui.render_conversion(
        result,
        mode=mode,
        destination=compact_home_path(output_root.resolve()),
        dry_run=dry_run,
        verbose=obj["verbose"],
    )


@cli.command("push-store", help="Push the store to its git remote.")
@click.pass_obj
def push_store(obj: Dict[str, Any]) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        _service(obj).push_store()
    ui.render_message("push-store", "Store pushed to remote.")


@cli.command("pull-store", help="Pull the store from its git remote.")
@click.pass_obj
def pull_store(obj: Dict[str, Any]) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        result = _service(obj).pull_store()
    ui.render_warnings(result.warnings)
    if result.written:
        ui.render_message("pull-store", "Store pulled from remote.")


@cli.command("merge-store", help="Merge one namespace of another store into this one.")
@click.argument("other", type=click.Path(file_okay=False, path_type=Path))
@_project_option()
@_scope_option()
@_dry_run_option()
@click.pass_obj
def merge_store(
    obj: Dict[str, Any],
    other: Path,
    project: Optional[str],
    scope: Optional[str],
    dry_run: bool,
) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        result = _service(obj).merge_store(
            _runtime(obj).expand(other),
            project=project,
            scope=_scope(scope),
            dry_run=dry_run,
        )
    ui.render_conversion(
        result,
        mode="merge-store",
        destination=f"store/{result.namespace}",
        dry_run=dry_run,
        verbose=obj["verbose"],
    )


@cli.group(help="Manage store projects.")
def project() -> None:
    pass


@project.command("list", help="List store projects.")
@click.pass_obj
def project_list(obj: Dict[str, Any]) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        summaries = _service(obj).list_projects()
    ui.render_projects([item.as_dict() for item in summaries])


@project.command("rename", help="Rename a store project.")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_obj
def project_rename(obj: Dict[str, Any], old_name: str, new_name: str) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        _service(obj).rename_project(old_name, new_name)
    ui.render_message(
        "project",
        f"Renamed [bold]{escape(old_name)}[/bold] to [bold]{escape(new_name)}[/bold].",
    )


@cli.group(help="Manage reusable named rules.")
def rule() -> None:
    pass


@rule.command("show", help="Show a named rule.")
@click.argument("name")
@click.option(
    "--namespace",
    default=None,
    help=f"Namespace to read (default: search {PROJECTS_NAMESPACE}, then {USER_NAMESPACE}).",
)
@click.pass_obj
def rule_show(obj: Dict[str, Any], name: str, namespace: Optional[str]) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        found = _service(obj).find_rule(name, namespace=namespace)
    if found is None:
        raise click.ClickException(f"Rule not found: {name}")
    ui.render_rule(*found)


@rule.command("save", help="Save a file's content as a named rule.")
@click.argument("name")
@click.option(
    "--file",
    "source_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--namespace",
    default=PROJECTS_NAMESPACE,
    show_default=True,
    type=click.Choice([PROJECTS_NAMESPACE, USER_NAMESPACE]),
)
@click.option("--description", default=None)
@click.option(
    "--activation",
    default=Activation.ALWAYS.value,
    show_default=True,
    type=click.Choice(ACTIVATION_VALUES),
)
@click.option("--glob", "globs", multiple=True, help="Glob pattern (repeatable).")
@click.pass_obj
def rule_save(
    obj: Dict[str, Any],
    name: str,
    source_file: Path,
    namespace: str,
    description: Optional[str],
    activation: str,
    globs: tuple[str, ...],
) -> None:
    ui = RuleConsoleUI(Console())
    with _domain_errors():
        result = _service(obj).save_rule(
            name,
            read_text(source_file),
            namespace=namespace,
            description=description,
            activation=Activation(activation),
            globs=list(globs),
        )
    ui.render_conversion(
        result, mode="rule:save", destination=f"store/{namespace}", verbose=obj["verbose"]
    )


def main() -> int:
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.exceptions.Abort:
        return 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
