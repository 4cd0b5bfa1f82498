"""
Minimal ABIs for the contracts the trader talks to.
Only the functions actually called are listed.
"""


def _fn(name, inputs, outputs=(), mutability="view"):
    return {
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
        "type": "function"
    }


# Fixed product market maker (Limitless prophet markets)
MARKET_ABI = [
    _fn("buy", [
        ("investmentAmount", "uint256"),
        ("outcomeIndex", "uint256"),
        ("minOutcomeTokensToBuy", "uint256"),
    ], mutability="nonpayable"),
    _fn("sell", [
        ("returnAmount", "uint256"),
        ("outcomeIndex", "uint256"),
        ("maxOutcomeTokensToSell", "uint256"),
    ], mutability="nonpayable"),
    _fn("calcBuyAmount", [
        ("investmentAmount", "uint256"),
        ("outcomeIndex", "uint256"),
    ], outputs=["uint256"]),
    _fn("calcSellAmount", [
        ("returnAmount", "uint256"),
        ("outcomeIndex", "uint256"),
    ], outputs=["uint256"]),
    _fn("conditionalTokens", [], outputs=["address"]),
    _fn("collateralToken", [], outputs=["address"]),
]

ERC20_ABI = [
    _fn("balanceOf", [("account", "address")], outputs=["uint256"]),
    _fn("allowance", [
        ("owner", "address"),
        ("spender", "address"),
    ], outputs=["uint256"]),
    _fn("approve", [
        ("spender", "address"),
        ("amount", "uint256"),
    ], outputs=["bool"], mutability="nonpayable"),
    _fn("decimals", [], outputs=["uint8"]),
]

ERC1155_ABI = [
    _fn("balanceOf", [
        ("account", "address"),
        ("id", "uint256"),
    ], outputs=["uint256"]),
    _fn("isApprovedForAll", [
        ("account", "address"),
        ("operator", "address"),
    ], outputs=["bool"]),
    _fn("setApprovalForAll", [
        ("operator", "address"),
        ("approved", "bool"),
    ], mutability="nonpayable"),
]

CONDITIONAL_TOKENS_ABI = ERC1155_ABI + [
    _fn("redeemPositions", [
        ("collateralToken", "address"),
        ("parentCollectionId", "bytes32"),
        ("conditionId", "bytes32"),
        ("indexSets", "uint256[]"),
    ], mutability="nonpayable"),
    _fn("payoutDenominator", [("conditionId", "bytes32")], outputs=["uint256"]),
]
