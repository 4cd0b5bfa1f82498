# Transaction coordination
from .retry import retry_rpc_call, is_retryable_rpc_error
from .tx_lock import TransactionLock
from .transactions import GAS_UNKNOWN, estimate_gas_for, build_overrides, submit_with_gas
from .approvals import ApprovalManager, read_allowance, read_balance, safe_balance_of
from .sell_estimator import estimate_max_redeemable, estimate_position_value
from .trader import TradeExecutor, TradeResult

__all__ = [
    "retry_rpc_call",
    "is_retryable_rpc_error",
    "TransactionLock",
    "GAS_UNKNOWN",
    "estimate_gas_for",
    "build_overrides",
    "submit_with_gas",
    "ApprovalManager",
    "read_allowance",
    "read_balance",
    "safe_balance_of",
    "estimate_max_redeemable",
    "estimate_position_value",
    "TradeExecutor",
    "TradeResult",
]
