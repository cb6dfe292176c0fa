"""Tests for scan orchestration."""

import asyncio

import pytest
from conftest import make_frontend

from dappscan.analyzer.code_source import ContractCode
from dappscan.analyzer.contracts import ContractAnalyzer
from dappscan.analyzer.selectors import SelectorResolver
from dappscan.config import Config
from dappscan.errors import ProbeFailure, ScanTimeout
from dappscan.pipeline.scan import ScanPipeline

ADDR_A = "0x" + "a" * 40
ADDR_EOA = "0x" + "e" * 40


class _FakeProber:
    def __init__(self, frontend=None, delay: float = 0.0, error: Exception | None = None):
        self.frontend = frontend
        self.delay = delay
        self.error = error
        self.stopped = False

    async def probe(self, url):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.frontend

    async def stop(self):
        self.stopped = True


class _FakeSource:
    name = "fake"

    def __init__(self, codes):
        self.codes = codes

    async def get_code(self, address):
        return self.codes.get(address, ContractCode())


def _pipeline(prober, codes=None, scan_timeout=5.0) -> ScanPipeline:
    analyzer = ContractAnalyzer(_FakeSource(codes or {}), SelectorResolver(None, lookup_delay=0))
    return ScanPipeline(prober=prober, contract_analyzer=analyzer, scan_timeout=scan_timeout)


@pytest.mark.asyncio
async def test_run_produces_report_from_findings():
    frontend = make_frontend()
    frontend.contracts = [ADDR_EOA, ADDR_A]
    codes = {ADDR_A: ContractCode(bytecode="0x608063a9059cbb", verified=True)}

    report = await _pipeline(_FakeProber(frontend), codes).run("https://dapp.example")

    assert report["url"] == "https://dapp.example"
    assert report["contractAnalysis"]["addresses"] == [ADDR_A]
    assert report["contractAnalysis"]["functions"] == ["transfer(address,uint256)"]
    assert report["riskSummary"]["score"] == 100
    assert report["riskSummary"]["issues"] == [
        "1 verified contract(s) found",
        "No significant security issues detected",
    ]


@pytest.mark.asyncio
async def test_probe_failure_propagates():
    prober = _FakeProber(error=ProbeFailure("page load", "timeout"))
    with pytest.raises(ProbeFailure) as excinfo:
        await _pipeline(prober).scan_target("https://dapp.example")
    assert excinfo.value.phase == "page load"


@pytest.mark.asyncio
async def test_scan_deadline_raises_scan_timeout():
    prober = _FakeProber(make_frontend(), delay=1.0)
    with pytest.raises(ScanTimeout) as excinfo:
        await _pipeline(prober, scan_timeout=0.05).scan_target("https://slow.example")
    assert excinfo.value.url == "https://slow.example"


@pytest.mark.asyncio
async def test_context_manager_closes_prober():
    prober = _FakeProber(make_frontend())
    async with _pipeline(prober):
        pass
    assert prober.stopped is True


def test_from_config_wires_limits():
    config = Config(max_contracts=3, max_selector_lookups=7, max_tested_controls=4, scan_timeout=30)
    pipeline = ScanPipeline.from_config(config)

    assert pipeline.scan_timeout == 30
    assert pipeline.contract_analyzer.cap == 3
    assert pipeline.contract_analyzer.resolver.max_lookups == 7
    assert pipeline.prober.max_tested_controls == 4
    assert pipeline.contract_analyzer.fallback.rpc_url == config.rpc_url
