from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from ticketpos.utils import config

PAYMENT_LABELS = {"cash": "Cash", "transfer": "Transfer"}


def iso_timestamp(value: Optional[datetime]) -> Optional[str]:
    # fixed width so text ordering matches time ordering
    return value.isoformat(timespec="microseconds") if value else None


def format_money(amount, currency: str = config.CURRENCY) -> str:
    return f"{currency}{Decimal(amount):.2f}"


def payment_label(method: str) -> str:
    return PAYMENT_LABELS.get(method, method)


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: column headers, or None to use the first row as headers.
        rows: list of rows, each a list of cell values.
        aligns: 'l', 'c' or 'r' per column, all centered by default.

    Returns:
        str: Markdown formatted table, or "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines)
