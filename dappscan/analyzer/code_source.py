"""
Contract code sources.

Fetches deployed bytecode and verification metadata for an address:
- Etherscan (primary): bytecode via the proxy module plus verified source/ABI
- Ethereum JSON-RPC eth_getCode (fallback): bytecode only

Both sources degrade to an empty ContractCode on timeout or error rather than
raising.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

import aiohttp

from ..constants import EMPTY_BYTECODE

logger = logging.getLogger(__name__)

UNVERIFIED_ABI_MARKER = "Contract source code not verified"


@dataclass
class ContractCode:
    """Bytecode and provenance metadata for one address."""
    bytecode: Optional[str] = None
    verified: bool = False
    source_code: Optional[str] = None
    abi: Optional[List[Any]] = None
    source: Optional[str] = None  # which collaborator produced the bytecode

    @property
    def has_code(self) -> bool:
        """False for externally-owned accounts (no deployed code)."""
        code = (self.bytecode or "").strip().lower()
        return bool(code) and code != EMPTY_BYTECODE


class CodeSource(Protocol):
    name: str

    async def get_code(self, address: str) -> ContractCode: ...


def _as_bytecode(value: Any) -> Optional[str]:
    """Accept only hex strings; Etherscan reports errors in the same field."""
    if isinstance(value, str) and value.lower().startswith("0x"):
        return value
    return None


class EtherscanCodeSource:
    """Etherscan API client (bytecode, verification status, source, ABI)."""

    name = "etherscan"

    def __init__(
        self,
        api_key: str = "",
        api_url: str = "https://api.etherscan.io/v2/api",
        chain_id: int = 1,
        timeout: float = 10.0,
        retries: int = 0,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.chain_id = chain_id
        self.timeout = timeout
        self.retries = max(0, retries)

    def _params(self, **extra) -> dict:
        params = {"chainid": str(self.chain_id), "apikey": self.api_key or "YourApiKeyToken"}
        params.update(extra)
        return params

    async def _get_json(self, session, params: dict) -> Optional[dict]:
        attempt = 0
        while True:
            try:
                async with session.get(
                    self.api_url,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as resp:
                    if resp.status != 200:
                        logger.debug("Etherscan returned HTTP %s", resp.status)
                        return None
                    return await resp.json()
            except (asyncio.TimeoutError, aiohttp.ClientError):
                if attempt >= self.retries:
                    raise
                attempt += 1

    async def get_code(self, address: str) -> ContractCode:
        result = ContractCode()

        try:
            async with aiohttp.ClientSession() as session:
                code_data = await self._get_json(
                    session,
                    self._params(module="proxy", action="eth_getCode", address=address, tag="latest"),
                )
                if code_data:
                    result.bytecode = _as_bytecode(code_data.get("result"))
                    if result.bytecode:
                        result.source = self.name

                source_data = await self._get_json(
                    session,
                    self._params(module="contract", action="getsourcecode", address=address),
                )
                entries = (source_data or {}).get("result")
                entry = entries[0] if isinstance(entries, list) and entries else {}
                if isinstance(entry, dict) and entry.get("SourceCode"):
                    result.verified = True
                    result.source_code = entry["SourceCode"]

                    abi_string = entry.get("ABI")
                    if abi_string and abi_string != UNVERIFIED_ABI_MARKER:
                        try:
                            result.abi = json.loads(abi_string)
                        except ValueError:
                            logger.debug("Could not parse ABI for %s", address)

        except asyncio.TimeoutError:
            logger.debug("Etherscan timeout for %s", address)
        except Exception as e:
            logger.debug("Etherscan API failed for %s: %s", address, e)

        return result


class RpcCodeSource:
    """Public Ethereum JSON-RPC endpoint (bytecode only)."""

    name = "rpc"

    def __init__(self, rpc_url: str = "https://eth.llamarpc.com", timeout: float = 10.0, retries: int = 0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.retries = max(0, retries)

    async def get_code(self, address: str) -> ContractCode:
        result = ContractCode()
        payload = {
            "jsonrpc": "2.0",
            "method": "eth_getCode",
            "params": [address, "latest"],
            "id": 1,
        }

        attempt = 0
        while True:
            try:
                async with aiohttp.ClientSession() as session:
                    async with session.post(
                        self.rpc_url,
                        json=payload,
                        headers={"Content-Type": "application/json"},
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as resp:
                        if resp.status == 200:
                            data = await resp.json()
                            result.bytecode = _as_bytecode((data or {}).get("result"))
                            if result.bytecode:
                                result.source = self.name
                return result
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                if attempt >= self.retries:
                    logger.debug("RPC failed for %s: %s", address, e)
                    return result
                attempt += 1
            except Exception as e:
                logger.debug("RPC failed for %s: %s", address, e)
                return result


async def fetch_contract_code(
    address: str,
    primary: CodeSource,
    fallback: Optional[CodeSource] = None,
) -> ContractCode:
    """Fetch from the primary source, falling back when it yields no bytecode."""
    result = await primary.get_code(address)
    if result.bytecode:
        return result

    if fallback is not None:
        fallback_result = await fallback.get_code(address)
        if fallback_result.bytecode:
            # Keep whatever provenance the primary managed to report.
            fallback_result.verified = fallback_result.verified or result.verified
            fallback_result.source_code = fallback_result.source_code or result.source_code
            fallback_result.abi = fallback_result.abi or result.abi
            return fallback_result

    return result
