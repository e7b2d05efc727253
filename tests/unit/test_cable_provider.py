"""Unit tests for cable provider gateways"""

import json
import random
import httpx
import pytest
from bigbsubz_gateway.domain.exceptions import ProviderError
from bigbsubz_gateway.infrastructure.clients.cable import HttpCableProvider, SimulatedCableProvider


async def test_simulated_provider_respects_success_rate(dstv_compact):
    always = SimulatedCableProvider(success_rate=1.0)
    never = SimulatedCableProvider(success_rate=0.0)

    assert await always.subscribe(dstv_compact, "7023456789", "REF") is True
    assert await never.subscribe(dstv_compact, "7023456789", "REF") is False


async def test_simulated_provider_is_reproducible_with_seed(dstv_compact):
    first = SimulatedCableProvider(success_rate=0.5, rng=random.Random(42))
    second = SimulatedCableProvider(success_rate=0.5, rng=random.Random(42))

    a = [await first.subscribe(dstv_compact, "1", "R") for _ in range(20)]
    b = [await second.subscribe(dstv_compact, "1", "R") for _ in range(20)]
    assert a == b


async def test_http_provider_posts_subscription(dstv_compact):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "success"})

    provider = HttpCableProvider(base_url="http://provider.test", transport=httpx.MockTransport(handler))

    assert await provider.subscribe(dstv_compact, "7023456789", "REF-9") is True
    assert seen["url"] == "http://provider.test/cable/subscriptions"
    assert seen["body"]["provider"] == "dstv"
    assert seen["body"]["smart_card_number"] == "7023456789"
    assert seen["body"]["reference"] == "REF-9"
    assert seen["body"]["amount"] == "10500"


async def test_http_provider_refusal(dstv_compact):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "failed"}))
    provider = HttpCableProvider(base_url="http://provider.test", transport=transport)

    assert await provider.subscribe(dstv_compact, "7023456789", "REF") is False


async def test_http_provider_server_error(dstv_compact):
    transport = httpx.MockTransport(lambda request: httpx.Response(502))
    provider = HttpCableProvider(base_url="http://provider.test", transport=transport)

    with pytest.raises(ProviderError, match="502"):
        await provider.subscribe(dstv_compact, "7023456789", "REF")


async def test_http_provider_timeout(dstv_compact):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = HttpCableProvider(base_url="http://provider.test", timeout=1.5, transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderError, match="timeout after 1.5s"):
        await provider.subscribe(dstv_compact, "7023456789", "REF")


async def test_http_provider_malformed_body(dstv_compact):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
    provider = HttpCableProvider(base_url="http://provider.test", transport=transport)

    with pytest.raises(ProviderError, match="Invalid response"):
        await provider.subscribe(dstv_compact, "7023456789", "REF")
