"""dappscan: security scanner for Web3 dApp frontends and their contracts."""

from .constants import VERSION as __version__

__all__ = ["__version__"]
