"""HTTP API for dappscan."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from aiohttp import web

from ..errors import DappScanError
from ..storage.reports import ReportStore

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


class ScanApiServer:
    """Serves scan, report and health endpoints."""

    def __init__(
        self,
        host: str,
        port: int,
        store: ReportStore,
        scan: Callable[[str], Awaitable[dict]],
    ):
        self.host = host
        self.port = port
        self.store = store
        self.scan = scan
        self._app = self.build_app()
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/analyze", self._handle_analyze)
        app.router.add_get("/api/reports/{scan_id}", self._handle_report)
        app.router.add_get("/api/scans", self._handle_scans)
        app.router.add_get("/api/health", self._handle_health)
        return app

    async def start(self):
        """Start the API server."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Scan API listening on %s:%s", self.host, self.port)
        logger.info("Reports will be stored in %s", self.store.reports_dir)

    async def stop(self):
        """Stop the API server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    @staticmethod
    def _error(status: int, message: str) -> web.Response:
        return web.json_response(
            {"success": False, "error": message}, status=status, headers=CORS_HEADERS
        )

    async def _handle_analyze(self, request):  # noqa: ANN001
        """Run a scan for the posted URL and persist the report."""
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        url = str(body.get("url") or "").strip()
        if not url:
            return self._error(400, "URL is required")

        logger.info("Starting analysis for: %s", url)
        try:
            report = await self.scan(url)
        except DappScanError as exc:
            logger.error("Analysis of %s failed: %s", url, exc)
            return self._error(500, str(exc) or "Analysis failed")
        except Exception as exc:
            logger.exception("Analysis of %s failed", url)
            return self._error(500, str(exc) or "Analysis failed")

        await self.store.save(report, "json")
        logger.info("Analysis complete. Report saved: %s", report["scanId"])
        return web.json_response(
            {"success": True, "scanId": report["scanId"], "report": report},
            headers=CORS_HEADERS,
        )

    async def _handle_report(self, request):  # noqa: ANN001
        report = await asyncio.to_thread(self.store.load, request.match_info["scan_id"])
        if report is None:
            return self._error(404, "Report not found")
        return web.json_response(report, headers=CORS_HEADERS)

    async def _handle_scans(self, request):  # noqa: ANN001
        try:
            scans = await asyncio.to_thread(self.store.list_summaries)
        except OSError as exc:
            logger.error("Failed to fetch scans: %s", exc)
            return self._error(500, "Failed to fetch scan history")
        return web.json_response(scans, headers=CORS_HEADERS)

    async def _handle_health(self, request):  # noqa: ANN001
        return web.json_response(
            {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()},
            headers=CORS_HEADERS,
        )
