"""Integer money utilities.

All prices, amounts, and balances inside the engine are int cents (fen).
The upstream backend speaks yuan, so conversion happens once at the schema
boundary via yuan_to_cents.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def yuan_to_cents(value: object) -> int | None:
    """Convert a yuan amount (int, float, or numeric string) to cents.

    Returns None when the value is missing or unparseable: '750.5' -> 75050,
    '' -> None, 'abc' -> None. Rounds half-up to the nearest cent.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_yuan_str(cents: int) -> str:
    """Wire format for upstream requests: 75050 -> '750.50'."""
    sign = "-" if cents < 0 else ""
    abs_cents = abs(cents)
    return f"{sign}{abs_cents // 100}.{abs_cents % 100:02d}"


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 100000 -> '¥1,000.00', -1200 -> '-¥12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-¥{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"¥{cents // 100:,}.{cents % 100:02d}"
