from datetime import datetime
from typing import Optional, Sequence

from utils import config

_ALIGN_RULES = {"l": ":---", "c": ":---:", "r": "---:"}

STATUS_COLORS = {
    "pending": "yellow",
    "processing": "blue",
    "shipped": "magenta",
    "delivered": "green",
    "cancelled": "red",
}


def _cell(value) -> str:
    # pipes would break the table layout
    return str(value).replace("|", "\\|").replace("\n", " ")


def markdown_table(
    headers: Sequence,
    rows: Sequence[Sequence],
    aligns: Optional[str] = None,
) -> str:
    """
    Render rows as a Markdown table.

    aligns is a string with one of "l", "c", "r" per column, e.g. "lrr".
    Columns default to left alignment. Returns "" when there are no headers.
    """
    if not headers:
        return ""
    aligns = aligns or "l" * len(headers)
    if len(aligns) != len(headers):
        raise ValueError("aligns must have one entry per column")

    lines = [
        "| " + " | ".join(_cell(h) for h in headers) + " |",
        "| " + " | ".join(_ALIGN_RULES[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(_cell(v) for v in row) + " |" for row in rows]
    return "\n".join(lines)


def format_money(amount: float, currency: str = config.CURRENCY) -> str:
    return f"{amount:,.2f} {currency}"


def format_date(when: Optional[datetime]) -> str:
    return when.strftime("%Y-%m-%d") if when else "-"


def status_label(status: str) -> str:
    return status.capitalize()


def status_badge(status: str) -> str:
    """Rich markup for a colored status badge."""
    color = STATUS_COLORS.get(status, "white")
    return f"[bold {color}]{status_label(status)}[/]"


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 1, 0)] + "…"
