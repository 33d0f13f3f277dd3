"""
Token precision handling for PayStream.
"""

from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    localcontext,
)
from enum import Enum

# Arithmetic context for token amounts: wide enough for uint256 at 18 decimals
MONEY = Context(prec=78, rounding=ROUND_DOWN)


class RoundingPolicy(Enum):
    """Rounding policies for token amounts."""

    BANKERS = ROUND_HALF_EVEN
    HALF_UP = ROUND_HALF_UP
    TRUNCATE = ROUND_DOWN


class Currency:
    """
    Payroll token definition with precision and rounding rules.

    Accrued salary is truncated toward zero so that a stream never pays out
    more than it has earned.

    Attributes:
        code: Token symbol (e.g., 'HLUSD')
        decimals: Number of decimal places carried on the ledger
        rounding: Rounding policy for calculations
    """

    def __init__(
        self,
        code: str,
        decimals: int = 18,
        rounding: RoundingPolicy = RoundingPolicy.TRUNCATE,
    ):
        self.code = code.upper()
        self.decimals = decimals
        self.rounding = rounding

    def quantize(self, amount: Decimal) -> Decimal:
        """Quantize amount to token precision."""
        quantum = Decimal("1").scaleb(-self.decimals)  # e.g., 1e-18 for 18 dp
        with localcontext() as ctx:
            ctx.prec = 78
            return amount.quantize(quantum, rounding=self.rounding.value)

    def display(self, amount: Decimal, decimals: int = 3) -> str:
        """Render an amount for display with a fixed number of decimals."""
        quantum = Decimal("1").scaleb(-decimals)
        return f"{amount.quantize(quantum, rounding=ROUND_DOWN)}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency('{self.code}', decimals={self.decimals})"


# Standard token definitions
HLUSD = Currency("HLUSD", decimals=18)
USD = Currency("USD", decimals=2, rounding=RoundingPolicy.BANKERS)

# Token registry
CURRENCIES: dict[str, Currency] = {
    "HLUSD": HLUSD,
    "USD": USD,
}


def get_currency(code: str, decimals: int | None = None) -> Currency:
    """Get token by code, optionally overriding its precision."""
    code = code.upper()
    if code not in CURRENCIES:
        # Unknown tokens default to ERC-20 precision
        return Currency(code, decimals=18 if decimals is None else decimals)
    base = CURRENCIES[code]
    if decimals is None or decimals == base.decimals:
        return base
    return Currency(code, decimals=decimals, rounding=base.rounding)


def to_decimal(value: Decimal | float | str | int) -> Decimal:
    """Convert user or adapter input to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not amounts")
    return Decimal(str(value))


def from_base_units(value: int, decimals: int = 18) -> Decimal:
    """
    Convert fixed-point ledger units into a Decimal token amount.

    Args:
        value: Integer amount in the token's smallest unit (e.g. wei)
        decimals: Token decimals

    Returns:
        Decimal amount, e.g. ``from_base_units(10**18) == Decimal("1")``
    """
    with localcontext() as ctx:
        ctx.prec = 78  # uint256 fits
        return Decimal(int(value)).scaleb(-decimals)


def to_base_units(amount: Decimal | str | int, decimals: int = 18) -> int:
    """Convert a token amount into integer ledger units, truncating dust."""
    with localcontext() as ctx:
        ctx.prec = 78
        scaled = to_decimal(amount).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))
