"""Interaction prober data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import ACTION_UNTESTED, ElementRisk


@dataclass
class InteractiveElement:
    """A clickable control discovered on the page."""

    text: str
    tag_name: str
    classes: str = ""
    id: str = ""
    action: str = ACTION_UNTESTED
    risk: ElementRisk = ElementRisk.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "tagName": self.tag_name,
            "classes": self.classes,
            "id": self.id,
            "action": self.action,
            "risk": str(self.risk),
        }


@dataclass(frozen=True)
class WalletCall:
    """One recorded mock wallet invocation."""

    method: str
    params: Any = None
    timestamp: int = 0  # epoch milliseconds

    def to_dict(self) -> dict:
        return {"method": self.method, "params": self.params, "timestamp": self.timestamp}


@dataclass
class NetworkRequest:
    """A request observed while the page was loaded."""

    url: str
    method: str
    resource_type: str


@dataclass
class FrontendFindings:
    """Result of probing a dApp frontend."""

    url: str
    timestamp: str

    buttons: list[InteractiveElement] = field(default_factory=list)
    signatures: list[str] = field(default_factory=list)
    api_calls: list[str] = field(default_factory=list)
    external_scripts: list[str] = field(default_factory=list)
    contracts: list[str] = field(default_factory=list)
    network_requests: int = 0
    wallet_interactions: list[WalletCall] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "timestamp": self.timestamp,
            "buttons": [button.to_dict() for button in self.buttons],
            "signatures": list(self.signatures),
            "apiCalls": list(self.api_calls),
            "externalScripts": list(self.external_scripts),
            "contracts": list(self.contracts),
            "networkRequests": self.network_requests,
            "walletInteractions": [call.to_dict() for call in self.wallet_interactions],
        }
