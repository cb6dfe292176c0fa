"""Tests for function selector resolution."""

import httpx
import pytest

from dappscan.analyzer.selectors import (
    COMMON_SELECTORS,
    FourByteClient,
    SelectorResolver,
    lookup_static,
    normalize_selector,
)


def _client(handler) -> FourByteClient:
    return FourByteClient(
        base_url="https://sigdb.test/api/v1/signatures/",
        transport=httpx.MockTransport(handler),
    )


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("network disabled", request=request)


def test_normalize_selector_adds_prefix_and_lowercases():
    assert normalize_selector("A9059CBB") == "0xa9059cbb"
    assert normalize_selector(" 0xA9059CBB ") == "0xa9059cbb"
    assert normalize_selector("") == ""


def test_lookup_static_knows_erc20_transfer():
    assert lookup_static("0xa9059cbb") == "transfer(address,uint256)"
    assert lookup_static("0xdeadbeef") is None


def test_static_table_keys_are_normalized():
    for selector in COMMON_SELECTORS:
        assert selector == normalize_selector(selector)
        assert len(selector) == 10


@pytest.mark.asyncio
async def test_transfer_resolves_without_network():
    resolver = SelectorResolver(_client(_unreachable), lookup_delay=0)
    assert await resolver.resolve("0xa9059cbb") == "transfer(address,uint256)"
    await resolver.close()


@pytest.mark.asyncio
async def test_transfer_resolves_with_no_client_at_all():
    resolver = SelectorResolver(None, lookup_delay=0)
    assert await resolver.resolve("0xa9059cbb") == "transfer(address,uint256)"


@pytest.mark.asyncio
async def test_remote_lookup_returns_first_candidate():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params.get("hex_signature"))
        return httpx.Response(
            200,
            json={
                "results": [
                    {"text_signature": "collect(uint256)"},
                    {"text_signature": "gasprice_bit_ether(int128)"},
                ]
            },
        )

    resolver = SelectorResolver(_client(handler), lookup_delay=0)
    assert await resolver.resolve("0x12345678") == "collect(uint256)"
    assert seen == ["0x12345678"]
    await resolver.close()


@pytest.mark.asyncio
async def test_remote_results_are_memoized():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200, json={"results": [{"text_signature": "foo()"}]})

    resolver = SelectorResolver(_client(handler), lookup_delay=0)
    assert await resolver.resolve("0x11111111") == "foo()"
    assert await resolver.resolve("0x11111111") == "foo()"
    assert calls["count"] == 1
    await resolver.close()


@pytest.mark.asyncio
async def test_empty_result_yields_unknown_placeholder():
    resolver = SelectorResolver(
        _client(lambda request: httpx.Response(200, json={"results": []})),
        lookup_delay=0,
    )
    assert await resolver.resolve("0x22222222") == "Unknown function: 0x22222222"
    await resolver.close()


@pytest.mark.asyncio
async def test_transport_error_yields_failed_placeholder():
    resolver = SelectorResolver(_client(_unreachable), lookup_delay=0)
    assert await resolver.resolve("0x33333333") == "Failed to decode: 0x33333333"
    await resolver.close()


@pytest.mark.asyncio
async def test_http_error_yields_failed_placeholder():
    resolver = SelectorResolver(
        _client(lambda request: httpx.Response(503, json={})),
        lookup_delay=0,
    )
    assert await resolver.resolve("0x44444444") == "Failed to decode: 0x44444444"
    await resolver.close()


@pytest.mark.asyncio
async def test_failed_lookups_are_not_memoized():
    responses = [httpx.Response(503), httpx.Response(200, json={"results": [{"text_signature": "bar()"}]})]

    resolver = SelectorResolver(_client(lambda request: responses.pop(0)), lookup_delay=0)
    assert await resolver.resolve("0x55555555") == "Failed to decode: 0x55555555"
    assert await resolver.resolve("0x55555555") == "bar()"
    await resolver.close()


@pytest.mark.asyncio
async def test_retries_transport_errors():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"results": [{"text_signature": "baz()"}]})

    resolver = SelectorResolver(_client(handler), lookup_delay=0, retries=1)
    assert await resolver.resolve("0x66666666") == "baz()"
    assert attempts["count"] == 2
    await resolver.close()


@pytest.mark.asyncio
async def test_resolve_many_caps_lookups_and_keeps_order():
    def handler(request: httpx.Request) -> httpx.Response:
        selector = request.url.params["hex_signature"]
        return httpx.Response(200, json={"results": [{"text_signature": f"fn_{selector[2:]}()"}]})

    resolver = SelectorResolver(_client(handler), max_lookups=10, lookup_delay=0)
    selectors = [f"0x{i:08x}" for i in range(1, 16)]
    selectors[1] = "0xa9059cbb"

    functions = await resolver.resolve_many(selectors)

    assert len(functions) == 10
    assert functions[0] == "fn_00000001()"
    assert functions[1] == "transfer(address,uint256)"
    assert functions[-1] == "fn_0000000a()"
    await resolver.close()


@pytest.mark.asyncio
async def test_resolve_many_empty():
    resolver = SelectorResolver(None)
    assert await resolver.resolve_many([]) == []
