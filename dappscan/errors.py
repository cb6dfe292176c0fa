"""Exceptions raised by dappscan."""


class DappScanError(Exception):
    """Base exception for dappscan errors."""

    pass


class ProbeFailure(DappScanError):
    """Fatal frontend probing failure (browser launch or page load)."""

    def __init__(self, phase: str, message: str):
        self.phase = phase
        self.message = message
        super().__init__(f"Frontend analysis failed during {phase}: {message}")


class ScanTimeout(DappScanError):
    """The whole scan exceeded its deadline."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Scan of {url} timed out after {timeout:g}s")


class ConfigurationError(DappScanError):
    """Invalid configuration."""

    pass
