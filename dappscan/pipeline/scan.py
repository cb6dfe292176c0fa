"""Scan pipeline for dappscan."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..analyzer.browser import InteractionProber
from ..analyzer.browser_models import FrontendFindings
from ..analyzer.code_source import EtherscanCodeSource, RpcCodeSource
from ..analyzer.contracts import ContractAnalyzer, ContractFindings
from ..analyzer.risk import RiskSummary, score
from ..analyzer.selectors import FourByteClient, SelectorResolver
from ..config import Config
from ..errors import ScanTimeout
from ..reporter.report import build_report

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Frontend and contract findings for one target."""

    url: str
    frontend: FrontendFindings
    contracts: ContractFindings

    def risk_summary(self) -> RiskSummary:
        return score(self.frontend, self.contracts)

    def to_report(self) -> dict:
        return build_report(url=self.url, frontend=self.frontend, contracts=self.contracts)


class ScanPipeline:
    """Probe a frontend, then analyze the contracts it references."""

    def __init__(
        self,
        *,
        prober: InteractionProber,
        contract_analyzer: ContractAnalyzer,
        scan_timeout: float = 120.0,
    ):
        self.prober = prober
        self.contract_analyzer = contract_analyzer
        self.scan_timeout = scan_timeout

    @classmethod
    def from_config(cls, config: Config) -> "ScanPipeline":
        prober = InteractionProber(
            page_load_timeout=config.page_load_timeout,
            settle_delay=config.settle_delay,
            post_click_wait=config.post_click_wait,
            headless=config.headless,
            max_controls=config.max_controls,
            max_tested_controls=config.max_tested_controls,
            clickable_selectors=config.clickable_selectors,
            disable_sandbox=config.disable_chromium_sandbox,
        )
        resolver = SelectorResolver(
            FourByteClient(config.signature_db_url, timeout=config.lookup_timeout),
            max_lookups=config.max_selector_lookups,
            lookup_delay=config.selector_lookup_delay,
            retries=config.lookup_retries,
        )
        analyzer = ContractAnalyzer(
            primary=EtherscanCodeSource(
                api_key=config.etherscan_api_key,
                api_url=config.etherscan_api_url,
                chain_id=config.chain_id,
                timeout=config.code_fetch_timeout,
                retries=config.lookup_retries,
            ),
            fallback=RpcCodeSource(
                config.rpc_url,
                timeout=config.code_fetch_timeout,
                retries=config.lookup_retries,
            ),
            resolver=resolver,
            cap=config.max_contracts,
            dangerous_functions=config.dangerous_functions,
            large_contract_threshold=config.large_contract_threshold,
        )
        return cls(prober=prober, contract_analyzer=analyzer, scan_timeout=config.scan_timeout)

    async def close(self) -> None:
        """Release the browser and HTTP clients."""
        await self.prober.stop()
        await self.contract_analyzer.resolver.close()

    async def __aenter__(self) -> "ScanPipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _scan(self, url: str) -> ScanResult:
        logger.info("Step 1: frontend analysis of %s", url)
        frontend = await self.prober.probe(url)

        logger.info("Step 2: smart contract analysis (%s candidate addresses)", len(frontend.contracts))
        contracts = await self.contract_analyzer.analyze(frontend.contracts)

        return ScanResult(url=url, frontend=frontend, contracts=contracts)

    async def scan_target(self, url: str) -> ScanResult:
        """
        Run a full scan under the operation-level deadline.

        Raises ProbeFailure for fatal frontend errors and ScanTimeout when the
        deadline passes; the browser session is torn down in both cases.
        """
        try:
            return await asyncio.wait_for(self._scan(url), timeout=self.scan_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Scan of %s timed out after %ss", url, self.scan_timeout)
            raise ScanTimeout(url, self.scan_timeout) from exc

    async def run(self, url: str) -> dict:
        """Scan a target and return the renderer-ready report."""
        result = await self.scan_target(url)
        report = result.to_report()
        logger.info(
            "Scan %s: level=%s score=%s issues=%s",
            report["scanId"],
            report["riskSummary"]["level"],
            report["riskSummary"]["score"],
            len(report["riskSummary"]["issues"]),
        )
        return report
