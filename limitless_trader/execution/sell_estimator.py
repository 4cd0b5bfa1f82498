"""
Sizing of "sell everything" orders against the market's quoting function.

calcSellAmount(r, outcome) gives the outcome tokens needed to take `r`
collateral out of the market. The largest `r` whose quote fits the held
balance is found by doubling until the quote overshoots, then bisecting.

The quote must be non-decreasing in `r`. Non-monotonic quoting functions
are not supported and give an arbitrary feasible value.
"""

from typing import Optional

from ..clients.contracts import MarketHandle
from ..utils.logger import get_logger

logger = get_logger("sell_estimator")

MAX_EXPAND_ITERATIONS = 40
MAX_NARROW_ITERATIONS = 50


async def _tokens_needed(market: MarketHandle, return_amount: int, outcome_index: int) -> Optional[int]:
    # A revert means the market cannot pay out `return_amount`; not a transport error
    try:
        return await market.calc_sell_amount(return_amount, outcome_index)
    except Exception as e:
        logger.debug(f"calcSellAmount({return_amount}) failed: {e}")
        return None


async def estimate_max_redeemable(
    market: MarketHandle,
    outcome_index: int,
    token_balance: int,
    collateral_decimals: int,
    max_expand: int = MAX_EXPAND_ITERATIONS,
    max_narrow: int = MAX_NARROW_ITERATIONS
) -> int:
    """
    Largest collateral return whose token cost fits `token_balance`.

    Args:
        market: Market handle to quote against
        outcome_index: Outcome being sold
        token_balance: Outcome tokens held
        collateral_decimals: Decimals of the collateral token
        max_expand: Doubling steps before giving up on finding an upper bound
        max_narrow: Bisection steps

    Returns:
        Return amount in collateral units; 0 if not even one unit is feasible
    """
    low = 0
    high = 10 ** collateral_decimals

    for _ in range(max_expand):
        needed = await _tokens_needed(market, high, outcome_index)
        if needed is None or needed > token_balance:
            break
        low = high
        high *= 2

    for _ in range(max_narrow):
        mid = (low + high) // 2
        if mid == low or mid == high:
            break

        needed = await _tokens_needed(market, mid, outcome_index)
        if needed is None:
            break

        if needed <= token_balance:
            low = mid
        else:
            high = mid

    logger.debug(
        "Estimated max redeemable",
        extra={
            "market": market.address,
            "outcome_index": outcome_index,
            "token_balance": token_balance,
            "return_amount": low
        }
    )
    return low


async def estimate_position_value(
    market: MarketHandle,
    outcome_index: int,
    token_balance: int,
    cost: int
) -> Optional[int]:
    """
    Collateral value of a position, priced at the quote for its cost basis.

    Returns:
        balance * cost / tokens_needed(cost), or None if the quote fails
        or is zero
    """
    if cost <= 0:
        return None

    needed = await _tokens_needed(market, cost, outcome_index)
    if not needed:
        return None

    return (token_balance * cost) // needed
