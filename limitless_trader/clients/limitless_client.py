"""
Limitless API client for prophet market metadata.
Only the fields the trader consumes are parsed.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import aiohttp

from ..config import LIMITLESS_API_URL
from ..utils.logger import get_logger

logger = get_logger("limitless")


@dataclass
class MarketInfo:
    """Active market for one price oracle."""
    oracle_id: int
    address: str
    title: str
    collateral_token: str
    is_active: bool = True
    deadline: Optional[datetime] = None
    condition_id: str = ""
    position_ids: list[int] = field(default_factory=list)
    prices: list[float] = field(default_factory=list)

    def seconds_to_deadline(self, now: Optional[datetime] = None) -> Optional[float]:
        if self.deadline is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (self.deadline - now).total_seconds()


def _parse_datetime(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def parse_market(oracle_id: int, data: dict) -> Optional[MarketInfo]:
    """Parse a prophet market response; None if no market address."""
    market = data.get("market") or {}
    address = market.get("address")
    if not address:
        return None

    collateral = market.get("collateralToken") or {}

    position_ids = []
    for pid in market.get("positionIds") or []:
        try:
            position_ids.append(int(pid))
        except (ValueError, TypeError):
            logger.warning(f"Invalid position id {pid!r} for market {address}")

    prices = []
    for price in market.get("prices") or []:
        try:
            prices.append(float(price))
        except (ValueError, TypeError):
            prices.append(0.0)

    return MarketInfo(
        oracle_id=oracle_id,
        address=address,
        title=market.get("title") or "Untitled",
        collateral_token=collateral.get("address", ""),
        is_active=bool(data.get("isActive", True)),
        deadline=_parse_datetime(market.get("deadline")),
        condition_id=market.get("conditionId", ""),
        position_ids=position_ids,
        prices=prices
    )


class LimitlessClient:
    """
    Client for the Limitless market API.

    No authentication is needed for market metadata.
    """

    def __init__(
        self,
        base_url: str = LIMITLESS_API_URL,
        frequency: str = "hourly",
        timeout_seconds: float = 15.0
    ):
        """
        Initialize Limitless client.

        Args:
            base_url: API root
            frequency: Market frequency (hourly, daily, ...)
            timeout_seconds: Per-request timeout
        """
        self.base_url = base_url.rstrip("/")
        self.frequency = frequency
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
        logger.info("Limitless client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make HTTP request to the Limitless API."""
        if not self._session:
            await self.initialize()

        url = f"{self.base_url}{endpoint}"

        async with self._session.get(url, params=params) as response:
            response.raise_for_status()
            return await response.json()

    async def fetch_market(self, oracle_id: int) -> Optional[MarketInfo]:
        """
        Fetch the current market for a price oracle.

        Returns:
            MarketInfo, or None if the request failed or no market is open
        """
        try:
            data = await self._request(
                "/markets/prophet",
                params={"priceOracleId": oracle_id, "frequency": self.frequency}
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to fetch oracle {oracle_id}: {e}")
            return None

        market = parse_market(oracle_id, data or {})
        if market:
            logger.info(
                f"Oracle {oracle_id}: {market.title}",
                extra={"market": market.address, "is_active": market.is_active}
            )
        return market

    async def fetch_all_markets(self, oracle_ids: list[int]) -> list[MarketInfo]:
        """Fetch markets for all oracles concurrently, dropping failures."""
        results = await asyncio.gather(*(self.fetch_market(oid) for oid in oracle_ids))
        return [market for market in results if market is not None]
