"""
Conversions between human decimal amounts and on-chain integer amounts.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

from web3 import Web3

from .logger import get_logger

logger = get_logger("units")

Number = Union[str, int, float, Decimal]

# Enough digits for any uint256 amount
_PRECISION = 80


def _quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-precision)


def parse_units_prec(value: Number, decimals: int, precision: int = 4) -> int:
    """
    Convert a human amount into chain units, rounded to `precision` digits.

    Args:
        value: Human amount, e.g. "25" or 0.1234567
        decimals: Token decimals (6 for USDC)
        precision: Fractional digits kept before scaling

    Returns:
        Integer amount in the token's smallest unit, 0 if unparseable
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            # str() keeps floats at their shortest repr instead of binary noise
            if isinstance(value, (Decimal, int)):
                amount = Decimal(value)
            else:
                amount = Decimal(str(value).strip())
            if not amount.is_finite():
                raise InvalidOperation(value)
            rounded = amount.quantize(_quantum(precision), rounding=ROUND_HALF_UP)
        except (InvalidOperation, ValueError, TypeError):
            logger.debug(f"Unparseable amount {value!r}, using 0")
            return 0

        return int(rounded.scaleb(decimals).to_integral_value(rounding=ROUND_HALF_UP))


def format_units_prec(amount: int, decimals: int, precision: int = 4) -> str:
    """Format a chain amount as a fixed-point string with `precision` digits."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(int(amount)).scaleb(-decimals)
        return str(value.quantize(_quantum(precision), rounding=ROUND_HALF_UP))


def gwei_to_wei(gwei: Number) -> int:
    """Convert a gas price in gwei (fractions allowed) to wei."""
    return int(Web3.to_wei(Decimal(str(gwei)), "gwei"))
