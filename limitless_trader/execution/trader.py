"""
Buy, sell and redeem transactions for a single market.
Strategy decides when; this module only makes the calls safely.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from web3 import Web3

from ..clients.chain import Signer
from ..clients.contracts import MarketContracts
from ..config import TxSettings
from ..utils.logger import WalletLogger
from .approvals import ApprovalManager
from .retry import retry_rpc_call
from .sell_estimator import estimate_max_redeemable
from .transactions import submit_with_gas
from .tx_lock import TransactionLock

wallet_logger = WalletLogger("trader")

# Parent collection for top-level conditions
ROOT_COLLECTION_ID = b"\x00" * 32

BINARY_INDEX_SETS = (1, 2)


@dataclass
class TradeResult:
    """Result of a buy, sell or redeem."""
    success: bool
    action: str
    tx_hash: str = ""
    amount: int = 0  # Collateral in (buy), out (sell) or 0 (redeem)
    outcome_index: Optional[int] = None
    error: Optional[str] = None


def _condition_bytes(condition_id: str) -> bytes:
    raw = condition_id[2:] if condition_id.startswith("0x") else condition_id
    return bytes.fromhex(raw).rjust(32, b"\x00")


class TradeExecutor:
    """
    Sends market trades for a wallet.

    Approvals are ensured first; each trade transaction then runs under
    the wallet's transaction lock and is only sent with a gas estimate.
    """

    def __init__(
        self,
        tx_lock: TransactionLock,
        approvals: Optional[ApprovalManager] = None,
        settings: Optional[TxSettings] = None
    ):
        self.tx_lock = tx_lock
        self.settings = settings or TxSettings()
        self.approvals = approvals or ApprovalManager(tx_lock, self.settings)

    async def buy(
        self,
        signer: Signer,
        contracts: MarketContracts,
        investment: int,
        outcome_index: int,
        slippage_bps: int = 100
    ) -> TradeResult:
        """
        Buy `outcome_index` with `investment` collateral units.

        The minimum tokens accepted is the quoted amount less `slippage_bps`.
        """
        wallet = signer.address
        market = contracts.market

        allowance_ok = await self.approvals.ensure_allowance(
            signer, contracts.collateral, market.address, investment
        )
        if not allowance_ok:
            return TradeResult(
                success=False, action="buy", outcome_index=outcome_index,
                error="Collateral approval failed"
            )

        expected = await retry_rpc_call(
            lambda: market.calc_buy_amount(investment, outcome_index),
            max_attempts=self.settings.max_rpc_attempts
        )
        min_tokens = expected - (expected * slippage_bps) // 10_000

        wallet_logger.info(wallet, "buy", f"BUY outcome {outcome_index} for {investment} units")
        receipt = await self.tx_lock.run(
            wallet,
            lambda: submit_with_gas(
                market, "buy", [investment, outcome_index, min_tokens], self.settings
            )
        )
        if receipt is None:
            return TradeResult(
                success=False, action="buy", outcome_index=outcome_index,
                error="Buy gas estimate failed"
            )

        wallet_logger.success(wallet, "buy", "BUY completed")
        return TradeResult(
            success=True,
            action="buy",
            tx_hash=_tx_hash(receipt),
            amount=investment,
            outcome_index=outcome_index
        )

    async def sell(
        self,
        signer: Signer,
        contracts: MarketContracts,
        outcome_index: int,
        token_balance: int,
        return_amount: Optional[int] = None
    ) -> TradeResult:
        """
        Sell up to `token_balance` outcome tokens.

        Without an explicit `return_amount` the whole balance is sold for
        the largest return the market quotes within it.
        """
        wallet = signer.address
        market = contracts.market

        approved = await self.approvals.ensure_operator_approval(
            signer, contracts.outcome_tokens, market.address
        )
        if not approved:
            return TradeResult(
                success=False, action="sell", outcome_index=outcome_index,
                error="Outcome token approval failed"
            )

        if return_amount is None:
            return_amount = await estimate_max_redeemable(
                market, outcome_index, token_balance, contracts.decimals
            )
        if return_amount <= 0:
            return TradeResult(
                success=False, action="sell", outcome_index=outcome_index,
                error="Nothing redeemable for balance"
            )

        wallet_logger.info(wallet, "sell", f"SELL outcome {outcome_index} for {return_amount} units")
        receipt = await self.tx_lock.run(
            wallet,
            lambda: submit_with_gas(
                market, "sell", [return_amount, outcome_index, token_balance], self.settings
            )
        )
        if receipt is None:
            return TradeResult(
                success=False, action="sell", outcome_index=outcome_index,
                error="Sell gas estimate failed"
            )

        wallet_logger.success(wallet, "sell", "SELL completed")
        return TradeResult(
            success=True,
            action="sell",
            tx_hash=_tx_hash(receipt),
            amount=return_amount,
            outcome_index=outcome_index
        )

    async def redeem(
        self,
        signer: Signer,
        contracts: MarketContracts,
        condition_id: str,
        index_sets: Sequence[int] = BINARY_INDEX_SETS
    ) -> TradeResult:
        """Redeem resolved positions of a condition for collateral."""
        wallet = signer.address
        args = [
            contracts.collateral.address,
            ROOT_COLLECTION_ID,
            _condition_bytes(condition_id),
            list(index_sets),
        ]

        wallet_logger.info(wallet, "redeem", f"Redeeming condition {condition_id}")
        receipt = await self.tx_lock.run(
            wallet,
            lambda: submit_with_gas(
                contracts.outcome_tokens, "redeemPositions", args, self.settings
            )
        )
        if receipt is None:
            return TradeResult(success=False, action="redeem", error="Redeem gas estimate failed")

        wallet_logger.success(wallet, "redeem", "Redeem completed")
        return TradeResult(success=True, action="redeem", tx_hash=_tx_hash(receipt))


def _tx_hash(receipt) -> str:
    tx_hash = receipt.get("transactionHash", "")
    return tx_hash if isinstance(tx_hash, str) else Web3.to_hex(tx_hash)
