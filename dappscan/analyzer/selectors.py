"""Function selector resolution.

Maps 4-byte selectors to human-readable signatures. A static table answers the
common cases without touching the network; everything else goes to a
4byte.directory compatible signature database. Lookups are serialized and
spaced out to respect the public service's rate limits.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterable, Optional

import httpx

logger = logging.getLogger(__name__)

COMMON_SELECTORS: dict[str, str] = {
    # ERC-20
    "0xa9059cbb": "transfer(address,uint256)",
    "0x23b872dd": "transferFrom(address,address,uint256)",
    "0x095ea7b3": "approve(address,uint256)",
    "0x70a08231": "balanceOf(address)",
    "0xdd62ed3e": "allowance(address,address)",
    "0x18160ddd": "totalSupply()",
    "0x06fdde03": "name()",
    "0x95d89b41": "symbol()",
    "0x313ce567": "decimals()",
    # Ownership
    "0x8da5cb5b": "owner()",
    "0xf2fde38b": "transferOwnership(address)",
    "0x715018a6": "renounceOwnership()",
    # Supply management
    "0x40c10f19": "mint(address,uint256)",
    "0xa0712d68": "mint(uint256)",
    "0x1249c58b": "mint()",
    "0x42966c68": "burn(uint256)",
    # Vault / claim patterns
    "0x12065fe0": "getBalance()",
    "0x3ccfd60b": "withdraw()",
    "0x2e1a7d4d": "withdraw(uint256)",
    "0xd0e30db0": "deposit()",
    "0x4e71d92d": "claim()",
    "0x379607f5": "claim(uint256)",
    # Pausable
    "0x8456cb59": "pause()",
    "0x3f4ba83a": "unpause()",
    "0x5c975abb": "paused()",
    # Proxy administration
    "0x5c60da1b": "implementation()",
    "0x3659cfe6": "upgradeTo(address)",
    "0x4f1ef286": "upgradeToAndCall(address,bytes)",
    "0x8f283970": "changeAdmin(address)",
    "0xf851a440": "admin()",
}

_SELECTOR_RE = re.compile(r"^0x[0-9a-f]{8}$")


def normalize_selector(selector: str) -> str:
    """Lowercase and 0x-prefix a selector."""
    raw = (selector or "").strip().lower()
    if raw and not raw.startswith("0x"):
        raw = f"0x{raw}"
    return raw


def lookup_static(selector: str) -> Optional[str]:
    """Return the signature from the static table, if known."""
    return COMMON_SELECTORS.get(normalize_selector(selector))


class FourByteClient:
    """Minimal client for the 4byte.directory signature API."""

    user_agent: str = "dappscan/1.0"

    def __init__(
        self,
        base_url: str = "https://www.4byte.directory/api/v1/signatures/",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout_seconds = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def lookup(self, selector: str) -> list[str]:
        """
        Return candidate text signatures for a selector.

        Raises httpx errors on transport failure or non-2xx responses; callers
        decide how to degrade.
        """
        client = await self._get_client()
        resp = await client.get(self.base_url, params={"hex_signature": selector})
        resp.raise_for_status()
        data = resp.json() or {}
        results = data.get("results") or []
        return [
            str(item["text_signature"])
            for item in results
            if isinstance(item, dict) and item.get("text_signature")
        ]


class SelectorResolver:
    """Resolves selectors via the static table, then the signature database."""

    def __init__(
        self,
        client: Optional[FourByteClient] = None,
        *,
        max_lookups: int = 10,
        lookup_delay: float = 0.1,
        retries: int = 0,
    ):
        self.client = client
        self.max_lookups = max_lookups
        self.lookup_delay = lookup_delay
        self.retries = max(0, retries)
        # Shared by every concurrently analyzed contract.
        self._lookup_lock = asyncio.Lock()
        self._memo: dict[str, str] = {}

    async def close(self) -> None:
        if self.client:
            await self.client.close()

    async def resolve(self, selector: str) -> str:
        """Resolve one selector to a signature or an explicit placeholder. Never raises."""
        selector = normalize_selector(selector)

        static = lookup_static(selector)
        if static:
            return static

        if selector in self._memo:
            return self._memo[selector]

        if self.client is None or not _SELECTOR_RE.match(selector):
            return f"Unknown function: {selector}"

        async with self._lookup_lock:
            # Another contract may have resolved it while we waited.
            if selector in self._memo:
                return self._memo[selector]
            try:
                candidates = await self._lookup_with_retries(selector)
            except Exception as exc:
                logger.debug("Failed to decode %s: %s", selector, exc)
                return f"Failed to decode: {selector}"
            finally:
                await asyncio.sleep(self.lookup_delay)

        if candidates:
            signature = candidates[0]
            logger.debug("Decoded %s -> %s", selector, signature)
        else:
            logger.debug("Unknown selector: %s", selector)
            signature = f"Unknown function: {selector}"
        self._memo[selector] = signature
        return signature

    async def _lookup_with_retries(self, selector: str) -> list[str]:
        attempt = 0
        while True:
            try:
                return await self.client.lookup(selector)
            except (httpx.TimeoutException, httpx.TransportError):
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.debug("Retrying selector lookup %s (attempt %s)", selector, attempt + 1)

    async def resolve_many(self, selectors: Iterable[str]) -> list[str]:
        """Resolve the first `max_lookups` selectors, preserving order."""
        batch = list(selectors)[: self.max_lookups]
        if not batch:
            return []
        logger.info("Decoding %s function selectors", len(batch))
        return [await self.resolve(selector) for selector in batch]
