from typing import Iterable, Optional

from rich.markup import escape
from rich.panel import Panel

from rulebridge.tui.enums import UIStyle
from rulebridge.utils import compact_home_path


class UISection:
    @staticmethod
    def wrap(title: str, body, style: str = UIStyle.BLUE.value, subtitle: Optional[str] = None) -> Panel:
        return Panel(body, title=title, subtitle=subtitle, border_style=style, padding=(0, 1))

    @staticmethod
    def note(title: str, body: str, style: str) -> Panel:
        return Panel(body, title=title, border_style=style, padding=(0, 1))

    @staticmethod
    def bullets(title: str, items: Iterable[str], style: str) -> Panel:
        lines = "\n".join(f"- {escape(item)}" for item in items)
        return UISection.note(title, lines, style=style)

    @staticmethod
    def location(label: str, path) -> str:
        return f"{label}: [bold]{escape(compact_home_path(path))}[/bold]"
