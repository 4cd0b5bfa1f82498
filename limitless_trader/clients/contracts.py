"""
Typed contract handles for markets and tokens.

Each handle binds one address and ABI to a signer. Reads are exposed as
typed coroutine methods; mutations are limited to the fixed set named in
the handle's MUTATIONS and go through estimate_gas / submit.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Sequence

from web3 import Web3
from web3.contract import Contract

from .abis import MARKET_ABI, ERC20_ABI, ERC1155_ABI, CONDITIONAL_TOKENS_ABI
from .chain import ChainError, Signer, TransactionReverted, is_contract, run_blocking
from ..utils.logger import get_logger

logger = get_logger("contracts")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ContractInitError(ChainError):
    """Market contracts could not be resolved."""


@dataclass(frozen=True)
class GasOverrides:
    """Gas price and limit for one mutating call."""
    gas_price: int  # wei
    gas_limit: int

    def as_tx_params(self) -> dict[str, int]:
        return {"gasPrice": self.gas_price, "gas": self.gas_limit}


@dataclass
class PendingTransaction:
    """A broadcast transaction awaiting confirmation."""
    tx_hash: str
    signer: Signer
    receipt_timeout: Optional[float] = None
    poll_interval: float = 1.0

    async def wait(self, confirmations: int = 1) -> dict[str, Any]:
        """
        Wait until the transaction is mined and `confirmations` blocks deep.

        With no `receipt_timeout` this blocks until the receipt arrives.

        Raises:
            TransactionReverted: if the receipt status is 0
            TimeExhausted: if `receipt_timeout` is set and elapses first
        """
        web3 = self.signer.web3
        receipt = await run_blocking(
            lambda: web3.eth.wait_for_transaction_receipt(
                self.tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_interval
            )
        )

        if receipt["status"] != 1:
            raise TransactionReverted(self.tx_hash, receipt.get("blockNumber"))

        # The inclusion block counts as the first confirmation
        target_block = receipt["blockNumber"] + max(confirmations, 1) - 1
        while await self.signer.block_number() < target_block:
            await asyncio.sleep(self.poll_interval)

        return receipt


@dataclass(frozen=True)
class ContractHandle:
    """Base handle: address + ABI + signer."""
    address: str
    contract: Contract
    signer: Signer

    ABI: ClassVar[list] = []
    MUTATIONS: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def bind(cls, address: str, signer: Signer):
        """Bind the handle's ABI to `address`. No network I/O."""
        checksum = Web3.to_checksum_address(address)
        contract = signer.web3.eth.contract(address=checksum, abi=cls.ABI)
        return cls(address=checksum, contract=contract, signer=signer)

    def supports(self, operation: str) -> bool:
        return operation in self.MUTATIONS

    async def _read(self, name: str, *args) -> Any:
        fn = getattr(self.contract.functions, name)(*args)
        return await run_blocking(lambda: fn.call())

    def _mutation(self, operation: str, args: Sequence[Any]):
        if not self.supports(operation):
            raise ValueError(f"{type(self).__name__} has no mutation {operation}")
        return getattr(self.contract.functions, operation)(*args)

    async def estimate_gas(self, operation: str, args: Sequence[Any]) -> int:
        fn = self._mutation(operation, args)
        estimate = await run_blocking(
            lambda: fn.estimate_gas({"from": self.signer.address})
        )
        return int(estimate)

    async def submit(
        self,
        operation: str,
        args: Sequence[Any],
        overrides: GasOverrides,
        receipt_timeout: Optional[float] = None
    ) -> PendingTransaction:
        """Build, sign and broadcast a mutating call."""
        fn = self._mutation(operation, args)
        nonce = await self.signer.next_nonce()

        params = {
            "from": self.signer.address,
            "nonce": nonce,
            "chainId": self.signer.chain_id,
            **overrides.as_tx_params(),
        }
        tx = await run_blocking(lambda: fn.build_transaction(params))
        tx_hash = await self.signer.send_signed(tx)

        logger.info(
            f"Sent {operation} to {self.address}",
            extra={
                "tx_hash": tx_hash,
                "wallet": self.signer.address,
                "nonce": nonce,
                "gas_limit": overrides.gas_limit
            }
        )
        return PendingTransaction(
            tx_hash=tx_hash,
            signer=self.signer,
            receipt_timeout=receipt_timeout
        )


class MarketHandle(ContractHandle):
    """Fixed product market maker."""
    ABI = MARKET_ABI
    MUTATIONS = frozenset({"buy", "sell"})

    async def calc_buy_amount(self, investment: int, outcome_index: int) -> int:
        return int(await self._read("calcBuyAmount", investment, outcome_index))

    async def calc_sell_amount(self, return_amount: int, outcome_index: int) -> int:
        """Outcome tokens required to receive `return_amount` collateral."""
        return int(await self._read("calcSellAmount", return_amount, outcome_index))

    async def conditional_tokens(self) -> str:
        return await self._read("conditionalTokens")

    async def collateral_token(self) -> str:
        return await self._read("collateralToken")


class FungibleTokenHandle(ContractHandle):
    """ERC-20 collateral token."""
    ABI = ERC20_ABI
    MUTATIONS = frozenset({"approve"})

    async def balance_of(self, owner: str) -> int:
        return int(await self._read("balanceOf", owner))

    async def allowance(self, owner: str, spender: str) -> int:
        return int(await self._read("allowance", owner, spender))

    async def decimals(self) -> int:
        return int(await self._read("decimals"))


class SemiFungibleTokenHandle(ContractHandle):
    """ERC-1155 outcome token."""
    ABI = ERC1155_ABI
    MUTATIONS = frozenset({"setApprovalForAll"})

    async def balance_of(self, owner: str, token_id: int) -> int:
        return int(await self._read("balanceOf", owner, token_id))

    async def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return bool(await self._read("isApprovedForAll", owner, operator))


class ConditionalTokensHandle(SemiFungibleTokenHandle):
    """Conditional tokens registry (ERC-1155 plus redemption)."""
    ABI = CONDITIONAL_TOKENS_ABI
    MUTATIONS = frozenset({"setApprovalForAll", "redeemPositions"})

    async def payout_denominator(self, condition_id: bytes) -> int:
        """Non-zero once the condition is resolved."""
        return int(await self._read("payoutDenominator", condition_id))


def get_market_contract(address: str, signer: Signer) -> MarketHandle:
    return MarketHandle.bind(address, signer)


def get_erc20_contract(address: str, signer: Signer) -> FungibleTokenHandle:
    return FungibleTokenHandle.bind(address, signer)


def get_erc1155_contract(address: str, signer: Signer) -> SemiFungibleTokenHandle:
    return SemiFungibleTokenHandle.bind(address, signer)


def get_conditional_tokens_contract(address: str, signer: Signer) -> ConditionalTokensHandle:
    return ConditionalTokensHandle.bind(address, signer)


@dataclass(frozen=True)
class MarketContracts:
    """Everything needed to trade one market with one signer."""
    market: MarketHandle
    collateral: FungibleTokenHandle
    outcome_tokens: ConditionalTokensHandle
    decimals: int


async def load_market_contracts(
    market_address: str,
    collateral_address: str,
    signer: Signer
) -> MarketContracts:
    """
    Resolve the handles for a market.

    Checks that both addresses hold code, reads the market's
    conditional tokens address and the collateral decimals.

    Raises:
        ContractInitError: on any failure
    """
    web3 = signer.web3
    try:
        market_has_code, collateral_has_code = await asyncio.gather(
            is_contract(web3, market_address),
            is_contract(web3, collateral_address)
        )
    except Exception as e:
        raise ContractInitError(f"Contract init failed: {e}") from e

    if not market_has_code:
        raise ContractInitError(f"Market contract has no code at {market_address}")
    if not collateral_has_code:
        raise ContractInitError(f"Collateral contract has no code at {collateral_address}")

    market = get_market_contract(market_address, signer)
    collateral = get_erc20_contract(collateral_address, signer)

    try:
        ctf_address: Optional[str] = await market.conditional_tokens()
        decimals = await collateral.decimals()
    except Exception as e:
        raise ContractInitError(f"Contract init failed: {e}") from e

    if not ctf_address or ctf_address == ZERO_ADDRESS:
        raise ContractInitError("conditionalTokens returned zero address")

    logger.info(
        "Contracts loaded for market",
        extra={"market": market.address, "wallet": signer.address}
    )

    return MarketContracts(
        market=market,
        collateral=collateral,
        outcome_tokens=get_conditional_tokens_contract(ctf_address, signer),
        decimals=decimals
    )
