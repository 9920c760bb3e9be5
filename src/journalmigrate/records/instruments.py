"""
Instrument scaling for forex trade records.

Lot types map to a fixed number of base-currency units, and pip sizes
depend on the quote currency of the pair.
"""

from __future__ import annotations

LOT_SIZES: dict[str, int] = {
    "standard": 100_000,
    "mini": 10_000,
    "micro": 1_000,
}
"""Units per lot for each supported lot type."""

DEFAULT_LOT_TYPE = "standard"

TWO_DECIMAL_QUOTES: frozenset[str] = frozenset({"JPY", "HUF", "KRW", "CLP", "ISK", "PYG"})
"""Quote currencies priced with two decimal places (pip = 0.01)."""


def quote_currency(currency_pair: str | None) -> str | None:
    """Return the quote currency of a "BASE/QUOTE" pair, or None."""
    if not currency_pair or "/" not in currency_pair:
        return None
    return currency_pair.split("/", 1)[1].strip().upper() or None


def pip_size(currency_pair: str | None) -> float:
    decimals = 2 if quote_currency(currency_pair) in TWO_DECIMAL_QUOTES else 4
    return 10.0**-decimals


def units_for(lot_size: float | None, lot_type: str | None) -> float | None:
    """
    Convert a lot size into base-currency units.

    Unknown or missing lot types are treated as standard lots.
    """
    if lot_size is None:
        return None
    multiplier = LOT_SIZES.get(lot_type or DEFAULT_LOT_TYPE, LOT_SIZES[DEFAULT_LOT_TYPE])
    return lot_size * multiplier


def signed_pips(
    entry_price: float,
    exit_price: float,
    currency_pair: str | None,
    side: str | None,
) -> float:
    """
    Signed pip distance between entry and exit.

    Positive values are favourable moves: exit above entry for longs,
    exit below entry for shorts.
    """
    difference = exit_price - entry_price
    if side == "short":
        difference = entry_price - exit_price
    return difference / pip_size(currency_pair)


__all__ = [
    "LOT_SIZES",
    "DEFAULT_LOT_TYPE",
    "TWO_DECIMAL_QUOTES",
    "quote_currency",
    "pip_size",
    "units_for",
    "signed_pips",
]
