"""
Chain connection and wallet identity.
Wraps a blocking web3 provider for use from asyncio code.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from web3 import Web3
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..utils.logger import get_logger

logger = get_logger("chain")

T = TypeVar("T")


class ChainError(Exception):
    """Base error for chain interaction failures."""


class ChainConnectionError(ChainError):
    """No configured RPC endpoint is reachable."""


class RpcTimeoutError(ChainError):
    """An RPC read did not resolve in time."""


class TransactionReverted(ChainError):
    """A mined transaction has status 0."""

    def __init__(self, tx_hash: str, block_number: Optional[int] = None):
        super().__init__(f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash
        self.block_number = block_number


async def run_blocking(fn: Callable[[], T]) -> T:
    """Run a blocking web3 call in the loop's default executor."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, fn)


def ensure_hex_prefix(key: str) -> str:
    """Add a 0x prefix to a hex string if missing."""
    return key if key.startswith("0x") else f"0x{key}"


@dataclass(frozen=True)
class Signer:
    """
    A wallet identity: address plus the ability to sign and read chain state.

    One Signer is one nonce sequence; the transaction lock is keyed
    by its address.
    """
    web3: Web3
    account: LocalAccount
    chain_id: int

    @property
    def address(self) -> str:
        return self.account.address

    @classmethod
    def from_private_key(cls, web3: Web3, private_key: str, chain_id: int) -> "Signer":
        account = Account.from_key(ensure_hex_prefix(private_key.strip()))
        return cls(web3=web3, account=account, chain_id=chain_id)

    async def next_nonce(self) -> int:
        """Nonce for the next transaction, counting pending ones."""
        return await run_blocking(
            lambda: self.web3.eth.get_transaction_count(self.address, "pending")
        )

    async def block_number(self) -> int:
        return await run_blocking(lambda: self.web3.eth.block_number)

    async def send_signed(self, tx: dict[str, Any]) -> str:
        """Sign a built transaction and broadcast it. Returns the tx hash."""
        signed = self.account.sign_transaction(tx)
        tx_hash = await run_blocking(
            lambda: self.web3.eth.send_raw_transaction(signed.raw_transaction)
        )
        return Web3.to_hex(tx_hash)


def _probe(url: str, request_timeout: float) -> Web3:
    web3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": request_timeout}))
    # Raises on an unreachable endpoint
    web3.eth.block_number
    return web3


async def connect_web3(rpc_urls: list[str], request_timeout: float = 30.0) -> Web3:
    """
    Connect to the first reachable RPC endpoint.

    Args:
        rpc_urls: Candidate endpoints, tried in order
        request_timeout: HTTP timeout per request in seconds

    Returns:
        Connected Web3 instance
    """
    for url in rpc_urls:
        try:
            web3 = await run_blocking(lambda: _probe(url, request_timeout))
            logger.info(f"Connected to RPC {url}")
            return web3
        except Exception as e:
            logger.warning(f"RPC {url} failed, trying next: {e}")

    raise ChainConnectionError("All RPC providers failed")


async def is_contract(web3: Web3, address: str) -> bool:
    """Check whether an address holds deployed code."""
    code = await run_blocking(
        lambda: web3.eth.get_code(Web3.to_checksum_address(address))
    )
    return len(code) > 0


def load_signers(web3: Web3, private_keys: list[str], chain_id: int) -> list[Signer]:
    """Build one Signer per configured private key."""
    signers = [Signer.from_private_key(web3, key, chain_id) for key in private_keys]
    logger.info(f"Loaded {len(signers)} wallets")
    return signers
