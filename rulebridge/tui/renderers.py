from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from rulebridge.convert import ConversionResult
from rulebridge.rules.models import Rule
from rulebridge.tui.enums import UIStyle
from rulebridge.tui.sections import UISection
from rulebridge.tui.tables import (
    FormatsTable,
    ProjectsTable,
    RuleDetailTable,
    RulesTable,
)


class RuleConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_formats(self) -> None:
        self.console.print(
            UISection.wrap(
                "formats", FormatsTable.formats_table(), style=UIStyle.BLUE.value
            )
        )

    def render_conversion(
        self,
        result: ConversionResult,
        mode: str,
        destination: str,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> None:
        if dry_run:
            mode = f"{mode} (dry run)"
        self.console.print(
            UISection.wrap(
                "overview",
                RulesTable.summary_block(result.rules, mode=mode, destination=destination),
                style=UIStyle.BLUE.value,
            )
        )

        if result.rules:
            self.console.print(
                UISection.wrap(
                    "rules",
                    RulesTable.rules_table(result.rules, verbose=verbose or dry_run),
                    style=UIStyle.CYAN.value,
                )
            )

        self.render_warnings(result.warnings)

        if dry_run:
            self.console.print(
                UISection.note(
                    "dry run", "Nothing was written.", style=UIStyle.DIM.value
                )
            )
            return

        if result.written:
            stats = {"rules": str(len(result.rules))}
            if result.namespace is not None:
                stats["namespace"] = result.namespace
            stats["commit"] = result.commit_message or "nothing to commit"
            self.console.print(
                RulesTable.stats_panel("done", stats, ok=not result.warnings)
            )

    def render_warnings(self, warnings: list[str]) -> None:
        if warnings:
            self.console.print(
                UISection.bullets("warnings", warnings, style=UIStyle.YELLOW.value)
            )

    def render_projects(self, items: list[dict]) -> None:
        if not items:
            self.console.print(
                UISection.note(
                    "projects", "No projects in store.", style=UIStyle.YELLOW.value
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "projects", ProjectsTable.projects_table(items), style=UIStyle.BLUE.value
            )
        )

    def render_rule(self, namespace: str, rule: Rule) -> None:
        self.console.print(
            UISection.wrap(
                "rule",
                RuleDetailTable.detail_table(namespace, rule),
                style=UIStyle.BLUE.value,
            )
        )
        self.console.print(
            UISection.wrap("content", Text(rule.content), style=UIStyle.DIM.value)
        )

    def render_store_ready(self, path: Path, remote_url: Optional[str]) -> None:
        body = UISection.location("Store ready at", path)
        if remote_url:
            body = f"{body}\nRemote: {remote_url}"
        self.console.print(UISection.note("store", body, style=UIStyle.GREEN.value))

    def render_message(self, title: str, body: str, style: str = UIStyle.GREEN.value) -> None:
        self.console.print(UISection.note(title, body, style=style))
