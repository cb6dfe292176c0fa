"""Interaction prober control discovery and click testing."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from playwright.async_api import Page

from ..constants import (
    ACTION_COULD_NOT_TEST,
    ACTION_NAVIGATION,
    ACTION_UI_INTERACTION,
    ACTION_WALLET_REQUEST,
    ElementRisk,
)
from .browser_constants import (
    CONTROL_DISCOVERY_SCRIPT,
    MAX_CONTROL_TEXT,
    PAGE_TEXT_SCRIPT,
    build_control_selector,
)
from .browser_models import InteractiveElement, WalletCall
from .wallet import WalletInteractionLog

logger = logging.getLogger(__name__)


class BrowserInteractionMixin:
    """Control discovery and one-click-per-control testing."""

    @staticmethod
    def classify_interaction(
        step_calls: Sequence[WalletCall],
        current_url: str,
        landing_url: str,
    ) -> tuple[str, ElementRisk]:
        """Classify what a single click did."""
        if step_calls:
            method = step_calls[0].method
            risk = ElementRisk.DANGER if "send" in method else ElementRisk.WARNING
            return ACTION_WALLET_REQUEST.format(method=method), risk

        if current_url != landing_url:
            return ACTION_NAVIGATION, ElementRisk.WARNING

        return ACTION_UI_INTERACTION, ElementRisk.SAFE

    async def _page_text(self, page: Page) -> str:
        """Full document text for address extraction."""
        try:
            return await page.evaluate(PAGE_TEXT_SCRIPT) or ""
        except Exception as exc:
            logger.debug("Error reading page text: %s", exc)
            return ""

    async def _find_controls(self, page: Page) -> list[InteractiveElement]:
        """Find candidate interactive controls, capped at `max_controls`."""
        try:
            raw = await page.evaluate(
                CONTROL_DISCOVERY_SCRIPT,
                [self.clickable_selectors, MAX_CONTROL_TEXT, self.max_controls],
            )
        except Exception as exc:
            logger.debug("Error finding controls: %s", exc)
            return []

        controls = [
            InteractiveElement(
                text=str(item.get("text") or ""),
                tag_name=str(item.get("tag") or ""),
                classes=str(item.get("classes") or ""),
                id=str(item.get("id") or ""),
            )
            for item in (raw or [])
            if isinstance(item, dict)
        ]
        return controls[: self.max_controls]

    async def _test_controls(
        self,
        page: Page,
        controls: list[InteractiveElement],
        landing_url: str,
        log: WalletInteractionLog,
    ) -> None:
        """Click the first `max_tested_controls` controls, one at a time."""
        to_test = controls[: self.max_tested_controls]
        if not to_test:
            logger.info("No interactive controls found")
            return

        logger.info("Testing %s interactive elements", len(to_test))
        for control in to_test:
            await self._test_control(page, control, landing_url, log)

    async def _test_control(
        self,
        page: Page,
        control: InteractiveElement,
        landing_url: str,
        log: WalletInteractionLog,
    ) -> None:
        """Click one control and record what it did. Never raises."""
        log.begin_step()
        selector = build_control_selector(control.id, control.classes, control.tag_name, control.text)

        try:
            handle = await page.query_selector(selector)
            if handle is None:
                logger.debug("Could not locate control '%s' via %s", control.text[:30], selector)
                control.action, control.risk = ACTION_COULD_NOT_TEST, ElementRisk.UNKNOWN
                return

            await handle.click(timeout=self.click_timeout)
            await asyncio.sleep(self.post_click_wait)
            control.action, control.risk = self.classify_interaction(log.step_calls, page.url, landing_url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Could not test control '%s': %s", control.text[:30], str(exc)[:200])
            control.action, control.risk = ACTION_COULD_NOT_TEST, ElementRisk.UNKNOWN

        # Any click that left the landing page, wallet flows included, must not
        # carry its URL into the next control's classification.
        if page.url != landing_url:
            await self._return_to(page, landing_url)
            # Calls fired while reloading belong to no control.
            log.begin_step()

    async def _return_to(self, page: Page, landing_url: str) -> None:
        try:
            await page.goto(landing_url, wait_until="networkidle", timeout=self.timeout)
        except Exception as exc:
            logger.warning("Failed to navigate back to %s: %s", landing_url, str(exc)[:200])
