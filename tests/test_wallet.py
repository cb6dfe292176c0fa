"""Tests for the mock wallet provider and its interaction log."""

import json

from dappscan.analyzer.wallet import (
    UNSUPPORTED_METHOD_CODE,
    WALLET_BINDING,
    MockWallet,
    WalletInteractionLog,
)
from dappscan.constants import MOCK_ACCOUNT


def _fixed_clock():
    return 1700000000.5


def test_request_accounts_returns_mock_account():
    wallet = MockWallet()
    response = wallet.dispatch("eth_requestAccounts", [])
    assert response.ok
    assert response.result == [MOCK_ACCOUNT]


def test_chain_id_and_signing_methods():
    wallet = MockWallet()
    assert wallet.dispatch("eth_chainId").result == "0x1"
    assert wallet.dispatch("personal_sign", ["0xdead", MOCK_ACCOUNT]).result.startswith("0x")
    assert wallet.dispatch("eth_signTypedData_v4", [MOCK_ACCOUNT, "{}"]).ok
    assert wallet.dispatch("eth_sendTransaction", [{"to": MOCK_ACCOUNT}]).ok


def test_unsupported_method_is_typed_error_and_still_recorded():
    log = WalletInteractionLog()
    wallet = MockWallet(log)

    response = wallet.dispatch("wallet_switchEthereumChain", [{"chainId": "0x89"}])

    assert not response.ok
    assert response.error_code == UNSUPPORTED_METHOD_CODE
    assert response.to_payload() == {
        "error": {"code": 4200, "message": "No such method: wallet_switchEthereumChain"}
    }
    assert [call.method for call in log.calls] == ["wallet_switchEthereumChain"]


def test_every_call_is_recorded_before_answering():
    log = WalletInteractionLog(clock=_fixed_clock)
    wallet = MockWallet(log)

    wallet.dispatch("eth_accounts")
    wallet.dispatch("personal_sign", ["0xabc"])

    assert len(log) == 2
    assert log.calls[1].method == "personal_sign"
    assert log.calls[1].params == ["0xabc"]
    assert log.calls[1].timestamp == 1700000000500


def test_begin_step_scopes_step_calls_without_dropping_history():
    log = WalletInteractionLog()
    log.record("eth_requestAccounts")
    log.begin_step()
    assert log.step_calls == []

    log.record("eth_sendTransaction", [{}])
    assert [call.method for call in log.step_calls] == ["eth_sendTransaction"]
    assert [call.method for call in log.calls] == ["eth_requestAccounts", "eth_sendTransaction"]


def test_handle_binding_returns_payload():
    wallet = MockWallet()
    assert wallet.handle_binding(None, "eth_accounts", None) == {"result": [MOCK_ACCOUNT]}


def test_init_script_installs_provider_bound_to_host():
    script = MockWallet().init_script()
    assert WALLET_BINDING in script
    assert json.dumps(MOCK_ACCOUNT) in script
    assert "window.ethereum = provider" in script
    assert "__ACCOUNT__" not in script
    assert "__BINDING__" not in script
