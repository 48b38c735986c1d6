"""Money package: base-cents conversion and formatting."""

from expense_ledger.money.currency import (
    BASE_CURRENCY,
    CURRENCIES,
    THB,
    USD,
    VND,
    DisplayPreference,
    format_amount,
    format_compact,
    from_base_cents,
    get_currency,
    parse_amount,
    to_base_cents,
)

__all__ = [
    "BASE_CURRENCY",
    "CURRENCIES",
    "THB",
    "USD",
    "VND",
    "DisplayPreference",
    "format_amount",
    "format_compact",
    "from_base_cents",
    "get_currency",
    "parse_amount",
    "to_base_cents",
]
