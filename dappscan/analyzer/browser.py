"""Playwright-based interaction probing for Web3 dApps."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional
from urllib.parse import urlparse

from playwright.async_api import async_playwright, Browser, Page, Error as PlaywrightError

from ..config import DEFAULT_CLICKABLE_SELECTORS
from ..errors import ProbeFailure
from ..utils.addresses import extract_addresses
from .browser_constants import (
    API_RESOURCE_TYPES,
    MAX_LISTED_URLS,
    USER_AGENT,
    VIEWPORT,
    dedupe,
    format_signature_call,
)
from .browser_interaction import BrowserInteractionMixin
from .browser_models import FrontendFindings, NetworkRequest
from .wallet import WALLET_BINDING, MockWallet, WalletInteractionLog

logger = logging.getLogger(__name__)


class InteractionProber(BrowserInteractionMixin):
    """Drives a sandboxed page session with a mock wallet and records what controls do."""

    def __init__(
        self,
        page_load_timeout: float = 30,
        settle_delay: float = 3.0,
        post_click_wait: float = 1.0,
        headless: bool = True,
        max_controls: int = 20,
        max_tested_controls: int = 10,
        clickable_selectors: list[str] | None = None,
        disable_sandbox: bool = False,
    ):
        self.timeout = int(page_load_timeout * 1000)  # Convert to ms
        self.click_timeout = 5000
        self.settle_delay = settle_delay
        self.post_click_wait = post_click_wait
        self.headless = headless
        self.max_controls = max_controls
        self.max_tested_controls = max_tested_controls
        self.clickable_selectors = clickable_selectors or list(DEFAULT_CLICKABLE_SELECTORS)
        self.disable_sandbox = disable_sandbox
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> "InteractionProber":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self):
        """Start the browser instance. Safe to call from concurrent probes."""
        async with self._start_lock:
            if self._browser:
                return
            playwright = await async_playwright().start()
            sandbox_args: list[str] = []
            if self.disable_sandbox:
                sandbox_args = ["--no-sandbox", "--disable-setuid-sandbox"]
                logger.warning("Chromium sandbox disabled via DAPPSCAN_DISABLE_CHROMIUM_SANDBOX=1")
            try:
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    chromium_sandbox=not self.disable_sandbox,
                    args=[
                        "--disable-dev-shm-usage",
                        "--disable-gpu",
                        "--no-first-run",
                        *sandbox_args,
                    ],
                )
            except Exception:
                await playwright.stop()
                raise
            self._playwright = playwright
            self._browser = browser
            logger.info("Browser started")

    async def stop(self):
        """Stop the browser instance."""
        try:
            if self._browser:
                await self._browser.close()
        except PlaywrightError as exc:
            logger.warning("Browser close failed: %s", exc)
        finally:
            self._browser = None

        try:
            if self._playwright:
                await self._playwright.stop()
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Playwright stop error: %s", exc)
        finally:
            self._playwright = None

        logger.info("Browser stopped")

    @asynccontextmanager
    async def _session(self, wallet: MockWallet) -> AsyncIterator[Page]:
        """Isolated context + page with the mock wallet installed before any page script."""
        context = None
        page = None
        try:
            try:
                context = await self._browser.new_context(
                    viewport=VIEWPORT,
                    user_agent=USER_AGENT,
                    ignore_https_errors=True,
                    locale="en-US",
                )
                await context.expose_binding(WALLET_BINDING, wallet.handle_binding)
                await context.add_init_script(wallet.init_script())
                page = await context.new_page()
            except PlaywrightError as exc:
                raise ProbeFailure("session setup", str(exc)[:200]) from exc

            yield page
        finally:
            if page:
                try:
                    await page.close()
                except PlaywrightError as exc:
                    logger.debug("Page close failed: %s", exc)
            if context:
                try:
                    await context.close()
                except PlaywrightError as exc:
                    logger.warning("Context close failed: %s", exc)

    async def _load(self, page: Page, url: str) -> None:
        logger.info("Loading page: %s", url)
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.timeout)
        except PlaywrightError as exc:
            raise ProbeFailure("page load", str(exc)[:200]) from exc

        # Let client-rendered UI finish mounting.
        await asyncio.sleep(self.settle_delay)

    async def probe(self, url: str) -> FrontendFindings:
        """Probe a dApp frontend. Raises ProbeFailure on launch or page-load failure."""
        logger.info("Starting frontend analysis for: %s", url)

        if not self._browser:
            try:
                await self.start()
            except Exception as exc:
                raise ProbeFailure("browser launch", str(exc)[:200]) from exc

        # Fresh log per probe; nothing carries over from earlier or aborted runs.
        log = WalletInteractionLog()
        wallet = MockWallet(log)
        requests: list[NetworkRequest] = []
        target_host = (urlparse(url).hostname or "").lower()

        def handle_request(request) -> None:
            requests.append(NetworkRequest(request.url, request.method, request.resource_type))

        findings = FrontendFindings(url=url, timestamp=datetime.now(timezone.utc).isoformat())

        try:
            async with self._session(wallet) as page:
                page.on("request", handle_request)
                await self._load(page, url)
                landing_url = page.url

                page_text = await self._page_text(page)
                findings.buttons = await self._find_controls(page)
                await self._test_controls(page, findings.buttons, landing_url, log)
        except ProbeFailure:
            logger.error("Frontend analysis failed for %s", url)
            raise
        except PlaywrightError as exc:
            logger.error("Frontend analysis failed for %s: %s", url, exc)
            raise ProbeFailure("probing", str(exc)[:200]) from exc

        request_urls = [r.url for r in requests]
        findings.contracts = extract_addresses(page_text, request_urls)
        findings.api_calls = dedupe(
            [r.url for r in requests if r.resource_type in API_RESOURCE_TYPES], MAX_LISTED_URLS
        )
        findings.external_scripts = dedupe(
            [
                r.url
                for r in requests
                if r.resource_type == "script"
                and (not target_host or target_host not in r.url.lower())
            ],
            MAX_LISTED_URLS,
        )
        findings.network_requests = len(requests)
        findings.wallet_interactions = log.calls
        findings.signatures = [
            format_signature_call(call.method, call.params)
            for call in findings.wallet_interactions
            if "sign" in call.method
        ]

        logger.info(
            "Frontend analysis complete: %s elements, %s contract addresses, %s API calls, %s external scripts",
            len(findings.buttons),
            len(findings.contracts),
            len(findings.api_calls),
            len(findings.external_scripts),
        )
        return findings
