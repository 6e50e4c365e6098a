import asyncio
import json
import logging
from typing import Any, Dict

from .relay_gateway import RELAY_ACTION, CallerContext, RelayGateway

logger = logging.getLogger(__name__)


def build_relay_form(nonce: str, prompt: str, kind: str) -> Dict[str, str]:
    return {
        "action": RELAY_ACTION,
        "nonce": nonce,
        "prompt": prompt.strip(),
        "type": kind,
    }


class LocalRelayTransport:
    def __init__(self, gateway: RelayGateway, caller: CallerContext) -> None:
        self.gateway = gateway
        self.caller = caller

    async def send(self, prompt: str, kind: str) -> Dict[str, Any]:
        if not self.caller.nonce:
            raise RuntimeError("Security token missing")
        form = build_relay_form(self.caller.nonce, prompt, kind)
        logger.debug("Dispatching %s request to relay (session=%s)", kind, self.caller.session_id)
        envelope = await asyncio.to_thread(self.gateway.handle_form, form, self.caller)
        return json.loads(envelope.to_json())
