from collections import Counter

from rich.markup import escape
from rich.panel import Panel
from rich.table import Column, Table

from rulebridge.formats.registry import Format
from rulebridge.rules.models import Rule
from rulebridge.tui.enums import ACTIVATION_STYLE, UIStyle

PREVIEW_CHARS = 200


def content_preview(content: str, limit: int = PREVIEW_CHARS) -> str:
    if len(content) <= limit:
        return content
    return f"{content[:limit]}... ({len(content)} chars total)"


class RulesTable:
    @staticmethod
    def summary_block(rules: list[Rule], mode: str, destination: str):
        counts = Counter(rule.activation.value for rule in rules)
        chips = [f"{key}={value}" for key, value in sorted(counts.items()) if value > 0]
        if not chips:
            chips = ["none"]

        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Mode", mode)
        table.add_row("Destination", escape(destination))
        table.add_row("Rules", str(len(rules)))
        table.add_row("Activation", "  ".join(chips))
        return table

    @staticmethod
    def rules_table(rules: list[Rule], verbose: bool = False) -> Table:
        columns = [
            Column(header="Name", width=24, overflow="ellipsis"),
            Column(header="Scope", width=8),
            Column(header="Activation", width=11),
            Column(header="Globs", overflow="ellipsis", max_width=30),
            Column(header="Description", overflow="ellipsis"),
        ]
        if verbose:
            columns.append(Column(header="Content", overflow="fold"))
        table = Table(*columns, expand=True, header_style="bold")

        for rule in rules:
            style = ACTIVATION_STYLE.get(rule.activation, UIStyle.WHITE.value)
            row = [
                escape(rule.display_name()),
                rule.scope.value,
                f"[{style}]{rule.activation.value}[/{style}]",
                escape(", ".join(rule.globs or [])),
                escape(rule.description or ""),
            ]
            if verbose:
                row.append(escape(content_preview(rule.content)))
            table.add_row(*row)
        return table

    @staticmethod
    def stats_panel(title: str, stats: dict[str, str], ok: bool = True) -> Panel:
        table = Table(show_header=False, box=None)
        for key, value in stats.items():
            table.add_row(f"[bold]{key}[/bold]", escape(value))
        return Panel(
            table,
            title=title,
            border_style=UIStyle.GREEN.value if ok else UIStyle.YELLOW.value,
        )


class RuleDetailTable:
    @staticmethod
    def detail_table(namespace: str, rule: Rule) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column(overflow="fold")
        table.add_row("Namespace", escape(namespace))
        table.add_row("Name", escape(rule.display_name()))
        table.add_row("Id", rule.id or "-")
        table.add_row("Scope", rule.scope.value)
        table.add_row("Activation", rule.activation.value)
        if rule.globs:
            table.add_row("Globs", escape(", ".join(rule.globs)))
        if rule.description:
            table.add_row("Description", escape(rule.description))
        table.add_row("Source", rule.source_format or "-")
        table.add_row("Updated", rule.updated_at or "-")
        return table


class FormatsTable:
    @staticmethod
    def formats_table() -> Table:
        table = Table(
            Column(header="Format", width=12),
            Column(header="Layout", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for fmt in Format:
            table.add_row(fmt.value, fmt.description)
        return table


class ProjectsTable:
    @staticmethod
    def projects_table(items: list[dict]) -> Table:
        table = Table(
            Column(header="Project", overflow="ellipsis"),
            Column(header="Rules", width=8, justify="right"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            table.add_row(escape(item["name"]), item["rules"])
        return table
