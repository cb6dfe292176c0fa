"""Report building and rendering for dappscan."""

from .markdown import render_markdown
from .report import build_report, generate_scan_id

__all__ = ["build_report", "generate_scan_id", "render_markdown"]
