"""
Money: base-cents conversion and display formatting.

Every stored amount is an integer count of base-cents. Display currencies
exist only at the presentation step:

    user input --to_base_cents--> base-cents --(sums, diffs)--> base-cents
    base-cents --from_base_cents / format_amount--> what the user sees

DESIGN DECISION: Conversions go through Decimal and round half away from
zero. Round-trips between currencies are lossy, so a stored amount is never
re-derived from a converted display value.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from pydantic import BaseModel, ConfigDict

from expense_ledger.models.ledger import Currency
from expense_ledger.validation import ValidationError


Number = Union[int, float, Decimal]

CENTS_PER_UNIT = Decimal(100)

USD = Currency(
    code="USD",
    symbol="$",
    name="US Dollar",
    rate_to_base=1.0,
    decimals=2,
)
VND = Currency(
    code="VND",
    symbol="₫",
    name="Vietnamese Dong",
    rate_to_base=24000.0,
    decimals=0,
    symbol_after=True,
    group_separator=".",
    decimal_separator=",",
)
THB = Currency(
    code="THB",
    symbol="฿",
    name="Thai Baht",
    rate_to_base=36.0,
    decimals=0,
)

CURRENCIES: dict[str, Currency] = {c.code: c for c in (USD, VND, THB)}

BASE_CURRENCY = USD


def get_currency(code: str) -> Currency:
    """Look up a display currency by code (case-insensitive)."""
    currency = CURRENCIES.get((code or "").strip().upper())
    if currency is None:
        raise ValidationError.single(
            "currency",
            "unknown",
            f"Unsupported currency: {code}. Supported: {', '.join(CURRENCIES)}",
        )
    return currency


def _to_decimal(value: Number, field: str = "amount") -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError.single(field, "invalid_type", "Amount must be a number")
    # str() keeps floats like 10.05 from picking up binary noise
    amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not amount.is_finite():
        raise ValidationError.single(field, "invalid_value", "Amount must be a finite number")
    return amount


def _rate(currency: Currency) -> Decimal:
    return Decimal(str(currency.rate_to_base))


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def to_base_cents(display_amount: Number, currency: Currency) -> int:
    """
    Convert a user-entered display amount into base-cents.

    round(display_amount / rate_to_base * 100), half away from zero.

    Raises:
        ValidationError: For non-numeric, non-finite or negative input
    """
    amount = _to_decimal(display_amount)
    if amount < 0:
        raise ValidationError.single(
            "amount", "invalid_value", "Amount cannot be negative"
        )
    cents = amount / _rate(currency) * CENTS_PER_UNIT
    return int(cents.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_base_cents(base_cents: int, currency: Currency) -> Decimal:
    """
    Convert base-cents to a display amount in `currency`.

    (base_cents / 100) * rate_to_base, rounded half away from zero to the
    currency's display precision (whole units for zero-decimal currencies).
    """
    amount = Decimal(base_cents) / CENTS_PER_UNIT * _rate(currency)
    return amount.quantize(_quantum(currency.decimals), rounding=ROUND_HALF_UP)


def _group(amount: Decimal, currency: Currency) -> str:
    """Digits with grouping and the currency's separators, no sign."""
    text = f"{abs(amount):,.{currency.decimals}f}"
    return (
        text.replace(",", "\0")
        .replace(".", currency.decimal_separator)
        .replace("\0", currency.group_separator)
    )


def _with_symbol(number: str, negative: bool, currency: Currency) -> str:
    sign = "-" if negative else ""
    if currency.symbol_after:
        return f"{sign}{number}{currency.symbol}"
    return f"{sign}{currency.symbol}{number}"


def format_amount(base_cents: int, currency: Currency) -> str:
    """
    Format base-cents for display.

    Examples (1234567 base-cents): USD "$12,345.67", VND "296.296.080₫",
    THB "฿444,444".
    """
    amount = from_base_cents(base_cents, currency)
    return _with_symbol(_group(amount, currency), amount < 0, currency)


_COMPACT_SUFFIXES = [
    (Decimal(10) ** 12, "T"),
    (Decimal(10) ** 9, "B"),
    (Decimal(10) ** 6, "M"),
    (Decimal(10) ** 3, "K"),
]


def format_compact(base_cents: int, currency: Currency) -> str:
    """
    Compact display for chart axes and tight spaces ("$1.2K", "$35M").

    One fraction digit below 10 of a unit, none above; amounts under
    a thousand use the regular format.
    """
    amount = from_base_cents(base_cents, currency)
    magnitude = abs(amount)

    for index, (divisor, suffix) in enumerate(_COMPACT_SUFFIXES):
        if magnitude < divisor:
            continue
        scaled = magnitude / divisor
        digits = 1 if scaled < 10 else 0
        scaled = scaled.quantize(_quantum(digits), rounding=ROUND_HALF_UP)
        # 999.96K rounds up to 1000K; promote to the next suffix
        if scaled >= 1000 and index > 0:
            divisor, suffix = _COMPACT_SUFFIXES[index - 1]
            scaled = (magnitude / divisor).quantize(_quantum(1), rounding=ROUND_HALF_UP)
        number = f"{scaled.normalize():f}".replace(".", currency.decimal_separator)
        return _with_symbol(f"{number}{suffix}", amount < 0, currency)

    return format_amount(base_cents, currency)


def parse_amount(text: str, currency: Currency) -> int:
    """
    Parse user text ("$1,234.50", "1.000₫") into base-cents.

    Group separators are dropped, the currency's decimal separator is
    honored, and anything that is not a digit, '.' or '-' is ignored.

    Raises:
        ValidationError: If no number can be read
    """
    raw = text or ""
    if currency.group_separator != currency.decimal_separator:
        raw = raw.replace(currency.group_separator, "")
    raw = raw.replace(currency.decimal_separator, ".")
    cleaned = "".join(c for c in raw if c.isdigit() or c in ".-")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError.single(
            "amount", "invalid_format", f"Could not read an amount from '{text}'"
        )
    return to_base_cents(amount, currency)


class DisplayPreference(BaseModel):
    """
    The user's chosen display currency, passed explicitly.

    Loaded once (at startup or when the user changes it) and treated as
    read-only by the engine. Persisting it is someone else's job.
    """
    model_config = ConfigDict(frozen=True)

    currency: Currency = BASE_CURRENCY

    @classmethod
    def for_code(cls, code: str) -> "DisplayPreference":
        return cls(currency=get_currency(code))

    def to_base_cents(self, display_amount: Number) -> int:
        return to_base_cents(display_amount, self.currency)

    def from_base_cents(self, base_cents: int) -> Decimal:
        return from_base_cents(base_cents, self.currency)

    def format(self, base_cents: int) -> str:
        return format_amount(base_cents, self.currency)

    def format_compact(self, base_cents: int) -> str:
        return format_compact(base_cents, self.currency)

    def parse(self, text: str) -> int:
        return parse_amount(text, self.currency)
