"""Smart contract batch analysis.

For every discovered address: fetch bytecode, extract and resolve selectors,
and compute risk findings. Addresses are analyzed concurrently; a failure on
one address becomes a risk string and never stops the batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from ..config import DEFAULT_DANGEROUS_FUNCTIONS, DEFAULT_LARGE_CONTRACT_THRESHOLD
from .bytecode import detect_proxy, extract_selectors, find_risks
from .code_source import CodeSource, fetch_contract_code
from .selectors import SelectorResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractRecord:
    """Detailed analysis of one deployed contract."""

    address: str
    verified: bool
    bytecode_length: int
    is_proxy: bool
    source_code: Optional[str] = None
    functions: tuple[str, ...] = ()
    risks: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "verified": self.verified,
            "sourceCode": self.source_code,
            "functions": list(self.functions),
            "risks": list(self.risks),
            "bytecodeLength": self.bytecode_length,
            "isProxy": self.is_proxy,
        }


@dataclass
class ContractFindings:
    """
    Batch output. `addresses`, `verified` and `analysis` are positionally
    aligned; `functions` and `risks` are flattened across contracts.
    """

    addresses: list[str] = field(default_factory=list)
    verified: list[bool] = field(default_factory=list)
    analysis: list[ContractRecord] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)

    def add(self, record: ContractRecord) -> None:
        self.addresses.append(record.address)
        self.verified.append(record.verified)
        self.analysis.append(record)
        self.functions.extend(record.functions)
        self.risks.extend(record.risks)

    @property
    def verified_count(self) -> int:
        return sum(1 for v in self.verified if v)

    @property
    def unverified_count(self) -> int:
        return sum(1 for v in self.verified if not v)

    def to_dict(self) -> dict:
        return {
            "addresses": list(self.addresses),
            "verified": list(self.verified),
            "functions": list(self.functions),
            "risks": list(self.risks),
            "analysis": [record.to_dict() for record in self.analysis],
        }


class _Failure:
    __slots__ = ("message",)

    def __init__(self, message: str):
        self.message = message


_Outcome = Union[ContractRecord, _Failure, None]


class ContractAnalyzer:
    """Analyzes the contracts a dApp frontend references."""

    def __init__(
        self,
        primary: CodeSource,
        resolver: SelectorResolver,
        fallback: Optional[CodeSource] = None,
        *,
        cap: int = 5,
        dangerous_functions: Iterable[str] = DEFAULT_DANGEROUS_FUNCTIONS,
        large_contract_threshold: int = DEFAULT_LARGE_CONTRACT_THRESHOLD,
    ):
        self.primary = primary
        self.fallback = fallback
        self.resolver = resolver
        self.cap = cap
        self.dangerous_functions = list(dangerous_functions)
        self.large_contract_threshold = large_contract_threshold

    async def analyze(self, addresses: Iterable[str], cap: Optional[int] = None) -> ContractFindings:
        """Analyze up to `cap` addresses. Never raises for the batch."""
        limit = self.cap if cap is None else cap
        batch = list(addresses)[:limit]
        findings = ContractFindings()
        if not batch:
            return findings

        logger.info("Starting contract analysis for %s addresses", len(batch))
        outcomes = await asyncio.gather(*(self._analyze_one(address) for address in batch))

        # Assemble in input order so the aligned lists stay deterministic.
        for outcome in outcomes:
            if isinstance(outcome, ContractRecord):
                findings.add(outcome)
            elif isinstance(outcome, _Failure):
                findings.risks.append(outcome.message)

        logger.info(
            "Contract analysis complete: %s contracts, %s functions, %s risks",
            len(findings.addresses),
            len(findings.functions),
            len(findings.risks),
        )
        return findings

    async def _analyze_one(self, address: str) -> _Outcome:
        try:
            return await self.analyze_address(address)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Failed to analyze contract %s: %s", address, exc)
            return _Failure(f"Failed to analyze contract {address}: {exc}")

    async def analyze_address(self, address: str) -> Optional[ContractRecord]:
        """Analyze one address; None when it holds no code (externally-owned account)."""
        logger.debug("Analyzing contract: %s", address)
        code = await fetch_contract_code(address, self.primary, self.fallback)
        if not code.has_code:
            logger.info("No bytecode found for %s (likely EOA)", address)
            return None

        bytecode = code.bytecode or ""
        selectors = extract_selectors(bytecode)
        functions = await self.resolver.resolve_many(selectors)
        risks = find_risks(
            bytecode,
            functions,
            dangerous_functions=self.dangerous_functions,
            large_contract_threshold=self.large_contract_threshold,
        )

        return ContractRecord(
            address=address,
            verified=bool(code.verified),
            source_code=code.source_code or None,
            functions=tuple(functions),
            risks=tuple(risks),
            bytecode_length=len(bytecode),
            is_proxy=detect_proxy(bytecode),
        )
