"""
Currency formatting for ledger amounts.

Amounts are stored as integers in minor units and shown without decimals,
thousands grouped with dots: 300000 -> "Rp. 300.000".
"""

from typing import Optional

from marketplace_backend.app.core.config import settings


def format_currency(amount: int, prefix: Optional[str] = None) -> str:
    if prefix is None:
        prefix = settings.currency_prefix
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}{prefix} {grouped}"
