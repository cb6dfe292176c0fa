"""Report file storage for dappscan."""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Optional

from ..reporter.markdown import render_markdown
from ..reporter.report import summarize_report

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("json", "md", "both")

_SCAN_ID_RE = re.compile(r"^scan_[0-9a-z]+_[0-9a-z]+$")


class ReportStore:
    """Manages saved scan reports in a directory."""

    def __init__(self, reports_dir: Path):
        self.reports_dir = Path(reports_dir)
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def is_valid_scan_id(scan_id: str) -> bool:
        return bool(_SCAN_ID_RE.match(scan_id or ""))

    def json_path(self, scan_id: str) -> Path:
        return self.reports_dir / f"{scan_id}.json"

    def markdown_path(self, scan_id: str) -> Path:
        return self.reports_dir / f"{scan_id}.md"

    async def save(self, report: dict, fmt: str = "json") -> list[Path]:
        """Save a report as JSON, Markdown or both. Returns written paths."""
        if fmt not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format: {fmt}")

        scan_id = report["scanId"]
        paths: list[Path] = []

        if fmt in ("json", "both"):
            path = self.json_path(scan_id)
            await asyncio.to_thread(path.write_text, json.dumps(report, indent=2), encoding="utf-8")
            paths.append(path)

        if fmt in ("md", "both"):
            path = self.markdown_path(scan_id)
            await asyncio.to_thread(path.write_text, render_markdown(report), encoding="utf-8")
            paths.append(path)

        return paths

    def load(self, scan_id: str) -> Optional[dict]:
        """Load a saved JSON report, or None if missing/unreadable."""
        if not self.is_valid_scan_id(scan_id):
            return None
        path = self.json_path(scan_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read report %s: %s", path.name, exc)
            return None

    def list_summaries(self, limit: Optional[int] = None) -> list[dict]:
        """Summaries of saved JSON reports, newest first."""
        summaries = []
        for path in self.reports_dir.glob("*.json"):
            try:
                report = json.loads(path.read_text(encoding="utf-8"))
                summaries.append(summarize_report(report))
            except (OSError, ValueError) as exc:
                logger.warning("Could not read report %s: %s", path.name, exc)

        summaries.sort(key=lambda s: s.get("timestamp") or "", reverse=True)
        return summaries[:limit] if limit is not None else summaries
