# Chain and API clients
from .chain import Signer, connect_web3, load_signers
from .contracts import (
    MarketContracts,
    get_market_contract,
    get_erc20_contract,
    get_erc1155_contract,
    get_conditional_tokens_contract,
    load_market_contracts,
)
from .limitless_client import LimitlessClient, MarketInfo

__all__ = [
    "Signer",
    "connect_web3",
    "load_signers",
    "MarketContracts",
    "get_market_contract",
    "get_erc20_contract",
    "get_erc1155_contract",
    "get_conditional_tokens_contract",
    "load_market_contracts",
    "LimitlessClient",
    "MarketInfo",
]
