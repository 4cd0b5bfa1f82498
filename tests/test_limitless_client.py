"""
Tests for market API parsing and fetching.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import aiohttp
import pytest

from limitless_trader.clients.limitless_client import LimitlessClient, parse_market


SAMPLE_RESPONSE = {
    "isActive": True,
    "market": {
        "address": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
        "title": "BTC above $100,000 at 14:00 UTC?",
        "deadline": "2026-10-18T14:00:00.000Z",
        "collateralToken": {
            "address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            "decimals": 6,
            "symbol": "USDC"
        },
        "conditionId": "0x" + "ab" * 32,
        "positionIds": ["1234", "5678"],
        "prices": [72.5, 27.5]
    }
}


class TestParseMarket:
    """Tests for response parsing."""

    def test_parses_consumed_fields(self):
        market = parse_market(7, SAMPLE_RESPONSE)

        assert market.oracle_id == 7
        assert market.address == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
        assert market.collateral_token == "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
        assert market.position_ids == [1234, 5678]
        assert market.prices == [72.5, 27.5]
        assert market.deadline == datetime(2026, 10, 18, 14, 0, tzinfo=timezone.utc)
        assert market.is_active

    def test_missing_market(self):
        assert parse_market(7, {"isActive": False}) is None

    def test_seconds_to_deadline(self):
        market = parse_market(7, SAMPLE_RESPONSE)
        now = datetime(2026, 10, 18, 13, 50, tzinfo=timezone.utc)

        assert market.seconds_to_deadline(now) == 600


class TestLimitlessClient:
    """Tests for fetching."""

    @pytest.mark.asyncio
    async def test_fetch_all_drops_failures(self):
        client = LimitlessClient()
        client._request = AsyncMock(side_effect=[
            SAMPLE_RESPONSE,
            aiohttp.ClientConnectionError("refused"),
        ])

        markets = await client.fetch_all_markets([1, 2])

        assert [m.oracle_id for m in markets] == [1]
        client._request.assert_any_await(
            "/markets/prophet", params={"priceOracleId": 1, "frequency": "hourly"}
        )
