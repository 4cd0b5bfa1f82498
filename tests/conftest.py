"""
Shared fixtures: mocked signers, handles and pending transactions.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from limitless_trader.clients.contracts import (
    ConditionalTokensHandle,
    FungibleTokenHandle,
    MarketHandle,
    MarketContracts,
)
from limitless_trader.config import TxSettings


WALLET_A = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
WALLET_B = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
MARKET_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
CTF_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"


def make_signer(address: str = WALLET_A) -> MagicMock:
    signer = MagicMock()
    signer.address = address
    signer.chain_id = 8453
    return signer


def make_receipt(tx_hash: str = "0xabc123") -> dict:
    return {"status": 1, "blockNumber": 100, "transactionHash": tx_hash}


def make_handle(handle_cls, address: str, signer) -> AsyncMock:
    """
    Mock handle whose submit() returns a pending tx that confirms at once.

    Every submit is recorded in `handle.sent` as (operation, args).
    """
    handle = AsyncMock(spec=handle_cls)
    handle.address = address
    handle.signer = signer
    handle.supports = MagicMock(side_effect=lambda op: op in handle_cls.MUTATIONS)
    handle.estimate_gas.return_value = 50_000
    handle.sent = []

    async def submit(operation, args, overrides, receipt_timeout=None):
        handle.sent.append((operation, list(args)))
        pending = MagicMock()
        pending.wait = AsyncMock(return_value=make_receipt())
        return pending

    handle.submit.side_effect = submit
    return handle


@pytest.fixture
def settings():
    """Settings with no confirmations to wait for beyond inclusion."""
    return TxSettings(confirmations=1, max_rpc_attempts=3)


@pytest.fixture
def signer():
    return make_signer()


@pytest.fixture
def usdc(signer):
    return make_handle(FungibleTokenHandle, USDC_ADDRESS, signer)


@pytest.fixture
def ctf(signer):
    return make_handle(ConditionalTokensHandle, CTF_ADDRESS, signer)


@pytest.fixture
def market(signer):
    return make_handle(MarketHandle, MARKET_ADDRESS, signer)


@pytest.fixture
def market_contracts(market, usdc, ctf):
    return MarketContracts(
        market=market,
        collateral=usdc,
        outcome_tokens=ctf,
        decimals=6
    )
