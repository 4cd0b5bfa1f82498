"""
Per-wallet serialization of mutating transactions.
"""

import asyncio
from typing import Awaitable, Callable, Hashable, Optional, TypeVar

from ..utils.logger import WalletLogger

T = TypeVar("T")

wallet_logger = WalletLogger("tx_lock")


class TransactionLock:
    """
    FIFO queue of mutating operations, one queue per wallet.

    Two transactions from the same signer must never be in flight at once,
    or they race for the same nonce. Each call to run() chains its operation
    behind whatever is currently registered for the wallet and registers
    itself before yielding to the event loop, so operations start in the
    order run() was called. Wallets never wait on each other.

    Operations must not call run() for their own wallet; that waits on itself.
    """

    def __init__(self):
        self._pending: dict[Hashable, asyncio.Task] = {}

    def is_pending(self, wallet_id: Hashable) -> bool:
        """Whether an operation is registered for the wallet."""
        return wallet_id in self._pending

    async def run(
        self,
        wallet_id: Hashable,
        operation: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run `operation` once every earlier operation for `wallet_id` settled.

        Args:
            wallet_id: Wallet address (or any hashable identity)
            operation: Zero-argument coroutine function

        Returns:
            The operation's result; its exception propagates unchanged
        """
        previous = self._pending.get(wallet_id)
        task = asyncio.ensure_future(self._run_after(wallet_id, previous, operation))
        self._pending[wallet_id] = task

        try:
            return await task
        finally:
            # A later run() may already own the slot
            if self._pending.get(wallet_id) is task:
                del self._pending[wallet_id]

    async def _run_after(
        self,
        wallet_id: Hashable,
        previous: Optional[asyncio.Task],
        operation: Callable[[], Awaitable[T]]
    ) -> T:
        if previous is not None:
            # Only ordering matters here; the predecessor's caller gets its result
            await asyncio.wait({previous})
            if not previous.cancelled() and previous.exception() is not None:
                wallet_logger.debug(
                    str(wallet_id),
                    "tx_lock",
                    f"Previous transaction failed: {previous.exception()}"
                )

        return await operation()
