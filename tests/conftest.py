"""Global pytest configuration."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncGenerator

import pytest

from dappscan.analyzer.browser_models import FrontendFindings, InteractiveElement
from dappscan.analyzer.contracts import ContractFindings, ContractRecord
from dappscan.constants import ElementRisk

# Environment keys read by load_config(); cleared so a developer .env cannot leak in.
CONFIG_ENV_KEYS = (
    "ETHERSCAN_API_KEY",
    "ETHERSCAN_API_URL",
    "CHAIN_ID",
    "RPC_URL",
    "CUSTOM_RPC_URL",
    "SIGNATURE_DB_URL",
    "PAGE_LOAD_TIMEOUT",
    "SETTLE_DELAY",
    "POST_CLICK_WAIT",
    "MAX_CONTROLS",
    "MAX_TESTED_CONTROLS",
    "MAX_CONTRACTS",
    "MAX_SELECTOR_LOOKUPS",
    "SELECTOR_LOOKUP_DELAY",
    "LOOKUP_TIMEOUT",
    "CODE_FETCH_TIMEOUT",
    "LOOKUP_RETRIES",
    "SCAN_TIMEOUT",
    "HEADLESS",
    "DAPPSCAN_DISABLE_CHROMIUM_SANDBOX",
    "REPORTS_DIR",
    "CONFIG_DIR",
    "API_HOST",
    "API_PORT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run inside an empty directory with no dappscan environment set."""
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def make_frontend(
    risks: tuple[ElementRisk, ...] = (),
    external_scripts: int = 0,
    url: str = "https://dapp.example",
) -> FrontendFindings:
    """Frontend findings with one control per requested risk."""
    return FrontendFindings(
        url=url,
        timestamp="2024-01-01T00:00:00+00:00",
        buttons=[
            InteractiveElement(text=f"Control {i}", tag_name="BUTTON", risk=risk)
            for i, risk in enumerate(risks)
        ],
        external_scripts=[f"https://cdn{i}.example/lib.js" for i in range(external_scripts)],
    )


def make_contracts(*records: ContractRecord, extra_risks: tuple[str, ...] = ()) -> ContractFindings:
    findings = ContractFindings()
    for record in records:
        findings.add(record)
    findings.risks.extend(extra_risks)
    return findings


def make_record(address: str, verified: bool = False, risks: tuple[str, ...] = (), functions=()) -> ContractRecord:
    return ContractRecord(
        address=address,
        verified=verified,
        bytecode_length=10,
        is_proxy=False,
        functions=tuple(functions),
        risks=tuple(risks),
    )


@pytest.fixture(scope="session")
def event_loop() -> AsyncGenerator[asyncio.AbstractEventLoop, None]:
    """Provide a shared event loop for async tests and fixtures."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()


def _get_loop(request: pytest.FixtureRequest) -> asyncio.AbstractEventLoop:
    try:
        loop = request.getfixturevalue("event_loop")
    except pytest.FixtureLookupError:
        loop = asyncio.new_event_loop()
    if loop.is_closed():
        loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = testargs.get("event_loop") or asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**testargs))
        return True
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_fixture_setup(fixturedef, request):  # type: ignore[override]
    func = fixturedef.func
    if inspect.iscoroutinefunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        return loop.run_until_complete(func(**kwargs))

    if inspect.isasyncgenfunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        agen = func(**kwargs)
        value = loop.run_until_complete(agen.__anext__())

        def finalize() -> None:
            try:
                loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                pass

        request.addfinalizer(finalize)
        return value

    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")
