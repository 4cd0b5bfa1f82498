"""
Limitless Trader

Transaction layer for trading Limitless prophet markets on Base.

Key Modules:
- limitless_trader.clients: RPC connection, signers, contract handles, market API
- limitless_trader.execution: Retrier, per-wallet transaction lock, gas-gated
  submission, approvals, sell sizing and trade execution
- limitless_trader.utils: Logging and unit conversion
"""
