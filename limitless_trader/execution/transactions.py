"""
Gas estimation and gas-gated submission of mutating calls.

A failed estimate means the call would revert, so it aborts the operation.
There is no fallback gas limit.
"""

from typing import Any, Optional, Sequence

from ..clients.contracts import ContractHandle, GasOverrides
from ..config import TxSettings
from ..utils.logger import WalletLogger
from ..utils.units import gwei_to_wei

# Estimation failed or the handle cannot perform the operation
GAS_UNKNOWN = None

GAS_MARGIN_PERCENT = 120

wallet_logger = WalletLogger("gas")


async def estimate_gas_for(
    handle: ContractHandle,
    operation: str,
    args: Sequence[Any]
) -> Optional[int]:
    """
    Estimate gas for `operation` on `handle`.

    Returns:
        Gas estimate, or GAS_UNKNOWN if the handle lacks the operation
        or the node refuses to estimate it
    """
    wallet = handle.signer.address

    if not handle.supports(operation):
        wallet_logger.warn(
            wallet,
            "gas_unknown",
            f"Function {operation} not found on {type(handle).__name__}"
        )
        return GAS_UNKNOWN

    try:
        return await handle.estimate_gas(operation, args)
    except Exception as e:
        wallet_logger.warn(wallet, "gas_unknown", f"Gas estimate failed for {operation}: {e}")
        return GAS_UNKNOWN


def build_overrides(estimate: int, settings: TxSettings) -> GasOverrides:
    """Fixed gas price; limit is the estimate plus 20% plus a flat buffer."""
    return GasOverrides(
        gas_price=gwei_to_wei(settings.gas_price_gwei),
        gas_limit=(estimate * GAS_MARGIN_PERCENT) // 100 + settings.gas_limit_buffer
    )


async def submit_with_gas(
    handle: ContractHandle,
    operation: str,
    args: Sequence[Any],
    settings: TxSettings
) -> Optional[dict[str, Any]]:
    """
    Estimate, submit and wait for confirmations.

    Callers must hold the wallet's transaction lock.

    Returns:
        The transaction receipt, or None if gas estimation failed and
        nothing was sent
    """
    estimate = await estimate_gas_for(handle, operation, args)
    if estimate is GAS_UNKNOWN:
        return None

    overrides = build_overrides(estimate, settings)
    pending = await handle.submit(
        operation, args, overrides, receipt_timeout=settings.receipt_timeout_seconds
    )
    return await pending.wait(settings.confirmations)
