"""
Bounded retry with exponential backoff for RPC calls.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp
import requests
from web3._utils.error_formatters_utils import MISSING_DATA
from web3.exceptions import ContractLogicError, Web3RPCError

from ..utils.logger import WalletLogger

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
BASE_DELAY_SECONDS = 2.0

# JSON-RPC "limit exceeded", used by most providers for throttling
RATE_LIMIT_RPC_CODE = -32005

_RETRYABLE_MESSAGES = (
    "missing revert data",
    "rate limit",
    "too many requests",
    "connection",
)

# What web3 puts in ContractLogicError.data when the node returned no revert payload
_EMPTY_REVERT_DATA = (None, "", "0x", MISSING_DATA)

wallet_logger = WalletLogger("retry")


def _rpc_error_code(error: Exception) -> Optional[int]:
    payload = getattr(error, "rpc_response", None) or {}
    code = (payload.get("error") or {}).get("code") if isinstance(payload, dict) else None
    return code if isinstance(code, int) else None


def _has_revert_payload(error: ContractLogicError) -> bool:
    data = error.data
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, (bytes, bytearray)):
        return len(data) > 0
    return data not in _EMPTY_REVERT_DATA


def is_retryable_rpc_error(error: Exception) -> bool:
    """
    Transport or consistency failures worth another attempt.

    Reverts that carry revert data are business errors (e.g. insufficient
    balance) and are not retried.
    """
    if isinstance(error, ContractLogicError):
        return not _has_revert_payload(error)

    if isinstance(error, (
        ConnectionError,
        requests.exceptions.ConnectionError,
        aiohttp.ClientConnectionError,
    )):
        return True

    if isinstance(error, requests.exceptions.HTTPError):
        response = error.response
        if response is not None and response.status_code == 429:
            return True

    if isinstance(error, Web3RPCError) and _rpc_error_code(error) == RATE_LIMIT_RPC_CODE:
        return True

    message = str(error).lower()
    return any(fragment in message for fragment in _RETRYABLE_MESSAGES)


async def retry_rpc_call(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """
    Await `fn()` up to `max_attempts` times.

    The delay after failed attempt k (0-indexed) is base_delay * 2**k.
    Non-retryable errors and the final failure are re-raised unchanged.

    Args:
        fn: Zero-argument coroutine function performing the call
        max_attempts: Attempt ceiling
        base_delay: First backoff delay in seconds, BASE_DELAY_SECONDS if None
        sleep: Awaitable sleep, injectable for tests

    Returns:
        Whatever `fn` returns
    """
    if base_delay is None:
        base_delay = BASE_DELAY_SECONDS

    for attempt in range(max_attempts):
        try:
            return await fn()
        except Exception as e:
            if attempt == max_attempts - 1 or not is_retryable_rpc_error(e):
                raise

            delay = base_delay * (2 ** attempt)
            wallet_logger.warn(
                None,
                "rpc_retry",
                f"RPC call failed (attempt {attempt + 1}/{max_attempts}), "
                f"retrying in {delay * 1000:.0f}ms: {e}"
            )
            await sleep(delay)

    raise ValueError(f"max_attempts must be positive, got {max_attempts}")
