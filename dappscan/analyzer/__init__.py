"""Analyzer modules for dappscan."""

from .browser import InteractionProber
from .contracts import ContractAnalyzer, ContractFindings, ContractRecord
from .risk import RiskSummary, score
from .selectors import FourByteClient, SelectorResolver
from .wallet import MockWallet, WalletInteractionLog

__all__ = [
    "InteractionProber",
    "ContractAnalyzer",
    "ContractFindings",
    "ContractRecord",
    "RiskSummary",
    "score",
    "FourByteClient",
    "SelectorResolver",
    "MockWallet",
    "WalletInteractionLog",
]
