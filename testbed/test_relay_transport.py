import asyncio

import pytest

from chatterbox.generation import TextResult
from chatterbox.relay_gateway import CallerContext, RelayGateway
from chatterbox.relay_transport import LocalRelayTransport, build_relay_form
from chatterbox.security_tokens import SecurityTokens
from chatterbox.settings_store import SettingsStore


class CountingProvider:
    def __init__(self):
        self.requests = []

    def generate(self, request, settings):
        self.requests.append(request)
        return TextResult(content=f"echo: {request.prompt}")


def _gateway(tmp_path):
    store = SettingsStore(tmp_path)
    store.save(api_key="sk-test")
    provider = CountingProvider()
    tokens = SecurityTokens(secret=b"secret")
    return RelayGateway(tokens, store, provider), tokens, provider


def test_build_relay_form_matches_wire_fields():
    assert build_relay_form("n1", "  hello ", "image") == {
        "action": "generate",
        "nonce": "n1",
        "prompt": "hello",
        "type": "image",
    }


def test_send_returns_json_envelope(tmp_path):
    gateway, tokens, provider = _gateway(tmp_path)
    transport = LocalRelayTransport(gateway, CallerContext(session_id="s1", nonce=tokens.issue("s1")))

    envelope = asyncio.run(transport.send("hello", "text"))

    assert envelope == {"success": True, "data": {"content": "echo: hello", "type": "text"}}
    assert len(provider.requests) == 1


def test_send_without_token_raises_before_relay(tmp_path):
    gateway, tokens, provider = _gateway(tmp_path)
    transport = LocalRelayTransport(gateway, CallerContext(session_id="s1", nonce=None))

    with pytest.raises(RuntimeError, match="Security token missing"):
        asyncio.run(transport.send("hello", "text"))
    assert provider.requests == []


def test_send_with_wrong_token_gets_failure_envelope(tmp_path):
    gateway, tokens, provider = _gateway(tmp_path)
    transport = LocalRelayTransport(gateway, CallerContext(session_id="s1", nonce=tokens.issue("s2")))

    envelope = asyncio.run(transport.send("hello", "text"))

    assert envelope == {"success": False, "data": "Invalid token"}
    assert provider.requests == []
