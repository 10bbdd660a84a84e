"""Terminal rendering of conversation messages with rich."""

import math
from typing import Any

from rich.console import Group
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from insightguru.models.chat import Message, SessionSummary


def group_indian(digits: str) -> str:
    """Group an integer digit string the en-IN way: 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_value(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if math.isnan(number) or math.isinf(number):
        return str(value)

    sign = "-" if number < 0 else ""
    number = abs(number)
    if number.is_integer():
        return sign + group_indian(str(int(number)))
    whole, fraction = f"{number:.2f}".split(".")
    return f"{sign}{group_indian(whole)}.{fraction}"


def chart_summary(chart: dict[str, Any]) -> str:
    traces = [t for t in chart.get("data", []) if isinstance(t, dict)]
    kinds = sorted({str(t.get("type", "scatter")) for t in traces}) or ["unknown"]
    title = (chart.get("layout") or {}).get("title")
    if isinstance(title, dict):
        title = title.get("text")
    label = f"{len(traces)} trace(s), {', '.join(kinds)}"
    return f"{title} ({label})" if title else label


def preview_table(message: Message, row_limit: int = 200) -> Table:
    columns = message.display_columns
    table = Table(show_lines=False, header_style="bold")
    for col in columns:
        table.add_column(str(col), overflow="fold")
    for row in (message.rows or [])[:row_limit]:
        cells = row if isinstance(row, dict) else {}
        table.add_row(*(format_value(cells.get(col)) for col in columns))
    if message.rows and len(message.rows) > row_limit:
        table.caption = f"showing {row_limit} of {len(message.rows)} rows"
    return table


def render_message(message: Message, index: int, row_limit: int = 200) -> Panel:
    who = "InsightGuru" if message.is_bot else "You"
    parts: list[Any] = [Text(message.content)]

    if message.is_bot and message.has_details:
        if message.collapsed:
            parts.append(Text(f"▸ details hidden (/toggle {index})", style="dim"))
        else:
            if message.has_query:
                parts.append(Syntax(message.query, "sql", word_wrap=True))
            if message.show_preview:
                parts.append(preview_table(message, row_limit))
            if message.show_chart:
                parts.append(Text(f"Chart: {chart_summary(message.chart_spec)}", style="cyan"))

    return Panel(
        Group(*parts),
        title=f"[{index}] {who} · {message.timestamp}",
        title_align="left",
        border_style="yellow" if message.is_bot else "white",
    )


def sessions_table(sessions: list[SessionSummary], active: str = "") -> Table:
    table = Table(title="Sessions")
    table.add_column("")
    table.add_column("Name")
    table.add_column("Messages", justify="right")
    table.add_column("Updated")
    table.add_column("Id", style="dim")
    for s in sessions:
        table.add_row(
            "●" if s.session_id == active else "",
            s.name or "Untitled chat",
            str(s.message_count),
            s.updated_at or "",
            s.session_id,
        )
    return table
