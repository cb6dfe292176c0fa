"""Mock wallet provider for sandboxed probing.

The page sees an EIP-1193 style `window.ethereum` whose calls are forwarded to
the host through a Playwright binding. The host records every call in a
`WalletInteractionLog` before answering with a canned response, so the log
never depends on page-side state.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..constants import MOCK_ACCOUNT, MOCK_CHAIN_ID, MOCK_NETWORK_VERSION
from .browser_models import WalletCall

logger = logging.getLogger(__name__)

WALLET_BINDING = "__dappscanWalletCall"

# EIP-1193 "Unsupported Method"
UNSUPPORTED_METHOD_CODE = 4200

MOCK_SIGNATURE = "0x" + "ab" * 65
MOCK_TYPED_SIGNATURE = "0x" + "cd" * 65
MOCK_TRANSACTION_HASH = "0x" + "ef" * 32


@dataclass(frozen=True)
class WalletResponse:
    """Result of one provider call: either a result or a typed error."""

    result: Any = None
    error_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_code is None

    def to_payload(self) -> dict:
        """Shape passed back across the binding to the page-side shim."""
        if self.ok:
            return {"result": self.result}
        return {"error": {"code": self.error_code, "message": self.error_message}}


@dataclass
class WalletInteractionLog:
    """
    Append-only record of provider calls for one probing session.

    `begin_step()` marks a boundary; `step_calls` is everything recorded since
    the last boundary. Entries are never removed, so `calls` stays the complete
    session history.
    """

    clock: Callable[[], float] = time.time
    _calls: list[WalletCall] = field(default_factory=list)
    _step_start: int = 0

    def record(self, method: str, params: Any = None) -> WalletCall:
        call = WalletCall(method=method, params=params, timestamp=int(self.clock() * 1000))
        self._calls.append(call)
        return call

    def begin_step(self) -> None:
        self._step_start = len(self._calls)

    @property
    def step_calls(self) -> list[WalletCall]:
        return self._calls[self._step_start:]

    @property
    def calls(self) -> list[WalletCall]:
        return list(self._calls)

    def __len__(self) -> int:
        return len(self._calls)


class MockWallet:
    """Fixed-shape mock provider with a single dispatch entry point."""

    SUPPORTED_METHODS = (
        "eth_requestAccounts",
        "eth_accounts",
        "eth_chainId",
        "personal_sign",
        "eth_signTypedData_v4",
        "eth_sendTransaction",
    )

    def __init__(
        self,
        log: Optional[WalletInteractionLog] = None,
        account: str = MOCK_ACCOUNT,
        chain_id: str = MOCK_CHAIN_ID,
    ):
        self.log = log if log is not None else WalletInteractionLog()
        self.account = account
        self.chain_id = chain_id
        self._responses: dict[str, Callable[[Any], Any]] = {
            "eth_requestAccounts": lambda params: [self.account],
            "eth_accounts": lambda params: [self.account],
            "eth_chainId": lambda params: self.chain_id,
            "personal_sign": lambda params: MOCK_SIGNATURE,
            "eth_signTypedData_v4": lambda params: MOCK_TYPED_SIGNATURE,
            "eth_sendTransaction": lambda params: MOCK_TRANSACTION_HASH,
        }

    def dispatch(self, method: Any, params: Any = None) -> WalletResponse:
        """Record the call, then answer it. Unknown methods get a typed error."""
        method_name = str(method) if method is not None else ""
        self.log.record(method_name, params)
        logger.debug("Mock wallet request: %s", method_name)

        handler = self._responses.get(method_name)
        if handler is None:
            return WalletResponse(
                error_code=UNSUPPORTED_METHOD_CODE,
                error_message=f"No such method: {method_name}",
            )
        return WalletResponse(result=handler(params))

    def handle_binding(self, source: Any, method: Any, params: Any = None) -> dict:
        """Playwright `expose_binding` callback."""
        return self.dispatch(method, params).to_payload()

    def init_script(self) -> str:
        """Script installed before any page script runs."""
        return (
            PROVIDER_SCRIPT.replace("__BINDING__", WALLET_BINDING)
            .replace("__ACCOUNT__", json.dumps(self.account))
            .replace("__CHAIN_ID__", json.dumps(self.chain_id))
            .replace("__NETWORK_VERSION__", json.dumps(MOCK_NETWORK_VERSION))
        )


PROVIDER_SCRIPT = """
(() => {
    const binding = '__BINDING__';
    const account = __ACCOUNT__;

    const call = async (method, params) => {
        const reply = await window[binding](method, params === undefined ? null : params);
        if (reply && reply.error) {
            const err = new Error(reply.error.message);
            err.code = reply.error.code;
            throw err;
        }
        return reply ? reply.result : null;
    };

    const provider = {
        isMetaMask: true,
        chainId: __CHAIN_ID__,
        networkVersion: __NETWORK_VERSION__,
        selectedAddress: account,
        request: (args) => call((args || {}).method, (args || {}).params),
        enable: () => call('eth_requestAccounts', []),
        send: (methodOrPayload, params) => {
            if (typeof methodOrPayload === 'string') {
                return call(methodOrPayload, params);
            }
            const payload = methodOrPayload || {};
            return call(payload.method, payload.params);
        },
        on: () => provider,
        removeListener: () => provider,
    };

    window.ethereum = provider;
    window.web3 = { currentProvider: provider };
})();
"""
