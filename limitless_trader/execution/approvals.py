"""
Idempotent approval workflows for collateral and outcome tokens.
"""

import asyncio
from typing import Optional

from ..clients.chain import RpcTimeoutError, Signer
from ..clients.contracts import FungibleTokenHandle, SemiFungibleTokenHandle
from ..config import TxSettings
from ..utils.logger import WalletLogger
from .retry import retry_rpc_call
from .transactions import submit_with_gas
from .tx_lock import TransactionLock

wallet_logger = WalletLogger("approvals")


async def read_allowance(
    token: FungibleTokenHandle,
    owner: str,
    spender: str,
    timeout_seconds: float = 10.0,
    max_attempts: int = 5
) -> int:
    """
    Read an ERC-20 allowance through the retrier.

    Raises:
        RpcTimeoutError: if a read does not resolve within `timeout_seconds`
    """
    async def read() -> int:
        try:
            return await asyncio.wait_for(token.allowance(owner, spender), timeout_seconds)
        except asyncio.TimeoutError:
            raise RpcTimeoutError(
                f"Allowance read timed out after {timeout_seconds:g}s"
            ) from None

    return await retry_rpc_call(read, max_attempts=max_attempts)


async def read_balance(
    token: SemiFungibleTokenHandle,
    owner: str,
    token_id: int,
    max_attempts: int = 5
) -> int:
    """Read an ERC-1155 balance through the retrier."""
    return await retry_rpc_call(
        lambda: token.balance_of(owner, token_id),
        max_attempts=max_attempts
    )


async def safe_balance_of(token: SemiFungibleTokenHandle, owner: str, token_id: int) -> int:
    """ERC-1155 balance, 0 if the read fails."""
    try:
        return await token.balance_of(owner, token_id)
    except Exception as e:
        wallet_logger.debug(owner, "balance", f"Balance read failed for {token_id}: {e}")
        return 0


class ApprovalManager:
    """
    Ensures spenders and operators are approved before trades.

    Both workflows run under the wallet's transaction lock and send nothing
    when the approval already holds.
    """

    def __init__(
        self,
        tx_lock: TransactionLock,
        settings: Optional[TxSettings] = None
    ):
        """
        Initialize approval manager.

        Args:
            tx_lock: Lock shared by every component that sends transactions
            settings: Confirmations, gas price and retry ceiling
        """
        self.tx_lock = tx_lock
        self.settings = settings or TxSettings()

    async def _read_allowance(self, token: FungibleTokenHandle, owner: str, spender: str) -> int:
        return await read_allowance(
            token,
            owner,
            spender,
            timeout_seconds=self.settings.allowance_timeout_seconds,
            max_attempts=self.settings.max_rpc_attempts
        )

    async def ensure_allowance(
        self,
        signer: Signer,
        token: FungibleTokenHandle,
        spender: str,
        needed: int
    ) -> bool:
        """
        Make sure `spender` may move at least `needed` of the signer's tokens.

        A nonzero allowance is reset to zero before being raised, since some
        tokens reject changing one nonzero allowance to another.

        Returns:
            True if the allowance read back after any transactions covers
            `needed`; False if gas estimation failed for a step
        """
        return await self.tx_lock.run(
            signer.address,
            lambda: self._ensure_allowance(signer, token, spender, needed)
        )

    async def _ensure_allowance(
        self,
        signer: Signer,
        token: FungibleTokenHandle,
        spender: str,
        needed: int
    ) -> bool:
        wallet = signer.address
        wallet_logger.info(wallet, "allowance", "Checking collateral allowance...")
        current = await self._read_allowance(token, wallet, spender)

        if current >= needed:
            return True

        wallet_logger.info(wallet, "approve", f"Approving collateral {needed} to {spender}...")

        if current > 0:
            receipt = await submit_with_gas(token, "approve", [spender, 0], self.settings)
            if receipt is None:
                wallet_logger.warn(wallet, "approve", "Allowance reset aborted, no gas estimate")
                return False

        receipt = await submit_with_gas(token, "approve", [spender, needed], self.settings)
        if receipt is None:
            wallet_logger.warn(wallet, "approve", "Approval aborted, no gas estimate")
            return False

        after = await self._read_allowance(token, wallet, spender)
        if after < needed:
            wallet_logger.error(wallet, "approve", f"Allowance {after} still below {needed}")
            return False

        wallet_logger.success(wallet, "approve", "Collateral approved")
        return True

    async def ensure_operator_approval(
        self,
        signer: Signer,
        token: SemiFungibleTokenHandle,
        operator: str
    ) -> bool:
        """
        Make sure `operator` may transfer all of the signer's outcome tokens.

        A failed approval read is treated as "not approved".

        Returns:
            True once approved; False if gas estimation failed
        """
        return await self.tx_lock.run(
            signer.address,
            lambda: self._ensure_operator_approval(signer, token, operator)
        )

    async def _ensure_operator_approval(
        self,
        signer: Signer,
        token: SemiFungibleTokenHandle,
        operator: str
    ) -> bool:
        wallet = signer.address
        wallet_logger.info(wallet, "approval", "Checking outcome token approval...")

        try:
            approved = await retry_rpc_call(
                lambda: token.is_approved_for_all(wallet, operator),
                max_attempts=self.settings.max_rpc_attempts
            )
            if approved:
                return True
        except Exception as e:
            wallet_logger.warn(wallet, "approval", f"Failed to check approval: {e}")

        wallet_logger.info(wallet, "approve", f"Setting outcome token approval for {operator}...")
        receipt = await submit_with_gas(token, "setApprovalForAll", [operator, True], self.settings)
        if receipt is None:
            wallet_logger.warn(wallet, "approve", "Operator approval aborted, no gas estimate")
            return False

        wallet_logger.success(wallet, "approve", "Outcome tokens approved")
        return True
