"""
Tests for allowance and operator approval workflows.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from limitless_trader.clients.chain import RpcTimeoutError
from limitless_trader.config import TxSettings
from limitless_trader.execution.approvals import (
    ApprovalManager,
    read_allowance,
    read_balance,
    safe_balance_of,
)
from limitless_trader.execution.tx_lock import TransactionLock

SPENDER = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@pytest.fixture
def manager(settings):
    return ApprovalManager(tx_lock=TransactionLock(), settings=settings)


class TestEnsureAllowance:
    """Tests for the ERC-20 allowance workflow."""

    @pytest.mark.asyncio
    async def test_sufficient_allowance_sends_nothing(self, manager, signer, usdc):
        usdc.allowance.return_value = 100

        assert await manager.ensure_allowance(signer, usdc, SPENDER, 100)
        assert usdc.sent == []

    @pytest.mark.asyncio
    async def test_zero_allowance_single_approve(self, manager, signer, usdc):
        """current == 0: one approve, no reset."""
        usdc.allowance.side_effect = [0, 25_000_000]

        assert await manager.ensure_allowance(signer, usdc, SPENDER, 25_000_000)
        assert usdc.sent == [("approve", [SPENDER, 25_000_000])]

    @pytest.mark.asyncio
    async def test_nonzero_allowance_resets_first(self, manager, signer, usdc):
        """0 < current < needed: reset to zero, then approve needed."""
        usdc.allowance.side_effect = [10, 25_000_000]

        assert await manager.ensure_allowance(signer, usdc, SPENDER, 25_000_000)
        assert usdc.sent == [
            ("approve", [SPENDER, 0]),
            ("approve", [SPENDER, 25_000_000]),
        ]

    @pytest.mark.asyncio
    async def test_verifies_allowance_after_approve(self, manager, signer, usdc):
        """Success is only reported when the re-read covers the amount."""
        usdc.allowance.side_effect = [0, 5]

        assert not await manager.ensure_allowance(signer, usdc, SPENDER, 25_000_000)
        assert len(usdc.sent) == 1

    @pytest.mark.asyncio
    async def test_reset_gas_unknown_aborts(self, manager, signer, usdc):
        usdc.allowance.return_value = 10
        usdc.estimate_gas.side_effect = Exception("execution reverted")

        assert not await manager.ensure_allowance(signer, usdc, SPENDER, 25_000_000)
        assert usdc.sent == []

    @pytest.mark.asyncio
    async def test_approve_gas_unknown_aborts_after_reset(self, manager, signer, usdc):
        usdc.allowance.return_value = 10
        usdc.estimate_gas.side_effect = [50_000, Exception("execution reverted")]

        assert not await manager.ensure_allowance(signer, usdc, SPENDER, 25_000_000)
        assert usdc.sent == [("approve", [SPENDER, 0])]

    @pytest.mark.asyncio
    async def test_waits_for_configured_confirmations(self, signer, usdc):
        manager = ApprovalManager(TransactionLock(), TxSettings(confirmations=3))
        usdc.allowance.side_effect = [0, 1]
        pending = AsyncMock()
        pending.wait.return_value = {"status": 1}
        usdc.submit.side_effect = None
        usdc.submit.return_value = pending

        assert await manager.ensure_allowance(signer, usdc, SPENDER, 1)
        pending.wait.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_runs_under_wallet_lock(self, signer, usdc):
        lock = TransactionLock()
        manager = ApprovalManager(lock)
        seen = []

        async def allowance(owner, spender):
            seen.append(lock.is_pending(owner))
            return 100

        usdc.allowance.side_effect = allowance

        assert await manager.ensure_allowance(signer, usdc, SPENDER, 1)
        assert seen == [True]
        assert not lock.is_pending(signer.address)

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, signer, usdc):
        manager = ApprovalManager(TransactionLock(), TxSettings(max_rpc_attempts=1))
        usdc.allowance.side_effect = ConnectionError("connection refused")

        with pytest.raises(ConnectionError):
            await manager.ensure_allowance(signer, usdc, SPENDER, 1)
        assert usdc.sent == []

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_double_approve(self, manager, signer, usdc):
        """The second caller sees the first caller's approval."""
        state = {"allowance": 0}

        async def allowance(owner, spender):
            await asyncio.sleep(0)
            return state["allowance"]

        async def submit(operation, args, overrides, receipt_timeout=None):
            usdc.sent.append((operation, list(args)))
            state["allowance"] = args[1]
            pending = AsyncMock()
            pending.wait.return_value = {"status": 1}
            return pending

        usdc.allowance.side_effect = allowance
        usdc.submit.side_effect = submit

        results = await asyncio.gather(
            manager.ensure_allowance(signer, usdc, SPENDER, 50),
            manager.ensure_allowance(signer, usdc, SPENDER, 50),
        )

        assert results == [True, True]
        assert usdc.sent == [("approve", [SPENDER, 50])]


class TestEnsureOperatorApproval:
    """Tests for the ERC-1155 operator workflow."""

    @pytest.mark.asyncio
    async def test_already_approved_sends_nothing(self, manager, signer, ctf):
        ctf.is_approved_for_all.return_value = True

        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert ctf.sent == []

    @pytest.mark.asyncio
    async def test_sets_approval(self, manager, signer, ctf):
        ctf.is_approved_for_all.return_value = False

        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert ctf.sent == [("setApprovalForAll", [SPENDER, True])]

    @pytest.mark.asyncio
    async def test_idempotent(self, manager, signer, ctf):
        """Second call after approval sends no transaction."""
        ctf.is_approved_for_all.side_effect = [False, True]

        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert len(ctf.sent) == 1

    @pytest.mark.asyncio
    async def test_read_failure_proceeds_to_approve(self, manager, signer, ctf, caplog):
        ctf.is_approved_for_all.side_effect = Exception("missing trie node")

        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert ctf.sent == [("setApprovalForAll", [SPENDER, True])]
        assert "Failed to check approval" in caplog.text

    @pytest.mark.asyncio
    async def test_read_retries_transport_errors(self, manager, signer, ctf, monkeypatch):
        monkeypatch.setattr("limitless_trader.execution.retry.BASE_DELAY_SECONDS", 0.0)
        ctf.is_approved_for_all.side_effect = [ConnectionError("connection reset"), True]

        assert await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert ctf.is_approved_for_all.await_count == 2
        assert ctf.sent == []

    @pytest.mark.asyncio
    async def test_gas_unknown_aborts(self, manager, signer, ctf):
        ctf.is_approved_for_all.return_value = False
        ctf.estimate_gas.side_effect = Exception("execution reverted")

        assert not await manager.ensure_operator_approval(signer, ctf, SPENDER)
        assert ctf.sent == []


class TestReads:
    """Tests for retried chain reads."""

    @pytest.mark.asyncio
    async def test_read_allowance_times_out(self, usdc):
        async def hang(owner, spender):
            await asyncio.sleep(10)

        usdc.allowance.side_effect = hang

        with pytest.raises(RpcTimeoutError):
            await read_allowance(usdc, "0xowner", SPENDER, timeout_seconds=0.01)
        assert usdc.allowance.await_count == 1

    @pytest.mark.asyncio
    async def test_read_balance_retries_transport_errors(self, ctf, monkeypatch):
        monkeypatch.setattr(
            "limitless_trader.execution.retry.BASE_DELAY_SECONDS", 0.0
        )
        ctf.balance_of.side_effect = [ConnectionError("connection reset"), 7]

        assert await read_balance(ctf, "0xowner", 1) == 7
        assert ctf.balance_of.await_count == 2

    @pytest.mark.asyncio
    async def test_safe_balance_of_defaults_to_zero(self, ctf):
        ctf.balance_of.side_effect = Exception("boom")

        assert await safe_balance_of(ctf, "0xowner", 1) == 0
