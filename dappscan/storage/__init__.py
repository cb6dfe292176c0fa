"""Storage modules for dappscan."""

from .reports import ReportStore

__all__ = ["ReportStore"]
