"""Centralized constants for dappscan.

Enums and fixed values shared by the prober, the contract analyzer,
the risk aggregator and the report builder.
"""

from enum import Enum

VERSION = "1.0.0"


class ElementRisk(str, Enum):
    """Risk assigned to an interactive control after one test click."""

    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str | None) -> "ElementRisk":
        """Convert string risk to enum, defaulting to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return self.value


class RiskLevel(str, Enum):
    """Overall risk level of a scanned dApp."""

    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"

    @classmethod
    def from_score(cls, score: int) -> "RiskLevel":
        """Step function with inclusive lower bounds at 80 and 50."""
        if score >= 80:
            return cls.SAFE
        if score >= 50:
            return cls.WARNING
        return cls.DANGER

    def __str__(self) -> str:
        return self.value


RISK_LEVEL_DESCRIPTIONS = {
    RiskLevel.SAFE: "This dApp appears to be relatively safe to interact with.",
    RiskLevel.WARNING: "This dApp has some potential security concerns that should be reviewed.",
    RiskLevel.DANGER: (
        "This dApp has significant security risks and should be approached with extreme caution."
    ),
}

# Control classification labels
ACTION_WALLET_REQUEST = "Wallet request: {method}"
ACTION_NAVIGATION = "Navigation/redirect"
ACTION_UI_INTERACTION = "UI interaction (modal/state change)"
ACTION_COULD_NOT_TEST = "Could not test"
ACTION_UNTESTED = "unknown"

# The address the mock wallet pretends to control
MOCK_ACCOUNT = "0x742d35Cc6634C0532925a3b8D3Ac92cfF2e5f262"
MOCK_CHAIN_ID = "0x1"
MOCK_NETWORK_VERSION = "1"

# Bytecode the code sources return for externally-owned accounts
EMPTY_BYTECODE = "0x"

REPORT_METADATA = {
    "analysisMethod": "Automated Playwright + Smart Contract Analysis",
    "tools": ["Playwright", "4byte.directory", "Etherscan API", "Ethereum JSON-RPC"],
    "disclaimers": [
        "This analysis is automated and may not catch all security issues",
        "Always verify contracts independently before interacting",
        "This tool does not guarantee the safety of any dApp",
        "Use at your own risk",
    ],
}
