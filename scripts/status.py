#!/usr/bin/env python3
"""
Wallet status for the Limitless trader.
Shows collateral, allowance and open positions per wallet for the
current market of each configured price oracle. Read-only.
"""

import asyncio

from web3 import Web3

from limitless_trader.clients import LimitlessClient, connect_web3, load_market_contracts, load_signers
from limitless_trader.clients.contracts import ContractInitError
from limitless_trader.config import load_config
from limitless_trader.execution import estimate_max_redeemable, read_allowance, safe_balance_of
from limitless_trader.utils import format_units_prec, setup_logging


async def show_wallet(signer, market_info, tx_settings):
    try:
        contracts = await load_market_contracts(
            market_info.address, market_info.collateral_token, signer
        )
    except ContractInitError as e:
        print(f"   ❌ {e}")
        return

    decimals = contracts.decimals
    collateral = await contracts.collateral.balance_of(signer.address)
    allowance = await read_allowance(
        contracts.collateral,
        signer.address,
        contracts.market.address,
        timeout_seconds=tx_settings.allowance_timeout_seconds,
        max_attempts=tx_settings.max_rpc_attempts
    )
    print(f"   💵 Collateral: {format_units_prec(collateral, decimals)}"
          f" | Allowance: {format_units_prec(allowance, decimals)}")

    if market_info.condition_id:
        denominator = await contracts.outcome_tokens.payout_denominator(
            Web3.to_bytes(hexstr=market_info.condition_id)
        )
        print(f"   ⚖️  Resolved: {denominator > 0}")

    for outcome_index, position_id in enumerate(market_info.position_ids):
        balance = await safe_balance_of(contracts.outcome_tokens, signer.address, position_id)
        if balance == 0:
            continue
        redeemable = await estimate_max_redeemable(
            contracts.market, outcome_index, balance, decimals
        )
        print(f"   🎟️  Outcome {outcome_index}: {balance} tokens"
              f" | Sell-all value: {format_units_prec(redeemable, decimals)}")


async def main():
    config = load_config()
    setup_logging(level="WARNING", json_format=False)

    web3 = await connect_web3(config.chain.rpc_urls)
    signers = load_signers(web3, config.wallet.private_keys, config.chain.chain_id)

    client = LimitlessClient(base_url=config.market.api_url, frequency=config.market.frequency)
    try:
        markets = await client.fetch_all_markets(config.market.price_oracle_ids)
    finally:
        await client.close()

    print("\n" + "=" * 60)
    print("📊 LIMITLESS WALLET STATUS")
    print("=" * 60)

    for market_info in markets:
        print(f"\n📈 Oracle {market_info.oracle_id}: {market_info.title}")
        print(f"   Active: {market_info.is_active} | Deadline: {market_info.deadline}")
        for signer in signers:
            print(f"\n  👛 {signer.address}")
            await show_wallet(signer, market_info, config.tx)

    if not markets:
        print("\n❌ No markets found")


if __name__ == "__main__":
    asyncio.run(main())
