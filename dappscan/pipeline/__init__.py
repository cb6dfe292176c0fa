"""Scan orchestration for dappscan."""

from .scan import ScanPipeline, ScanResult

__all__ = ["ScanPipeline", "ScanResult"]
