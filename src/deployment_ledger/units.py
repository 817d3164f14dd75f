"""Integer unit conversion for display purposes.

All amounts are kept as ``int`` wei. The helpers here only produce strings for
presentation and never feed back into arithmetic.
"""

from typing import Union

from .constants import WEI_PER_ETHER, WEI_PER_GWEI


def format_units(value: int, decimals: int) -> str:
    """
    Render an integer amount with a fixed number of decimals.

    Trailing zeros in the fractional part are dropped, so whole amounts render
    without a decimal point.

    Args:
        value: Amount in the smallest unit
        decimals: Number of decimals of the display unit

    Returns:
        Decimal string, e.g. ``format_units(4200000000000000, 18) == "0.0042"``
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Amount must be an int, got {type(value).__name__}")

    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_str:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_str}"


def format_ether(wei: int) -> str:
    return format_units(wei, 18)


def format_gwei(wei: int) -> str:
    return format_units(wei, 9)


def parse_units(amount: Union[str, int], decimals: int) -> int:
    """
    Parse a decimal string into the smallest unit without going through float.

    Args:
        amount: Decimal string (e.g. "1.5") or int
        decimals: Number of decimals of the given unit

    Returns:
        Integer amount in the smallest unit

    Raises:
        ValueError: If the string is not a plain decimal or has too many decimals
    """
    if isinstance(amount, int):
        return amount * 10**decimals

    text = amount.strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    whole, _, fraction = text.partition(".")
    if not (whole or fraction) or not (whole + fraction).isdigit():
        raise ValueError(f"Invalid decimal amount: {amount!r}")
    if len(fraction) > decimals:
        raise ValueError(f"Too many decimals in {amount!r} (max {decimals})")

    value = int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -value if negative else value


def parse_ether(amount: Union[str, int]) -> int:
    return parse_units(amount, 18)


def parse_gwei(amount: Union[str, int]) -> int:
    return parse_units(amount, 9)


__all__ = [
    "WEI_PER_ETHER",
    "WEI_PER_GWEI",
    "format_units",
    "format_ether",
    "format_gwei",
    "parse_units",
    "parse_ether",
    "parse_gwei",
]
