from importlib import import_module
from typing import Any

__all__ = [
    "GenerationSession",
    "RelayGateway",
    "CallerContext",
    "OpenAIGenerationClient",
    "DocumentTree",
    "DocumentMutator",
    "ConversationStore",
]

_EXPORTS = {
    "GenerationSession": ".orchestrator",
    "RelayGateway": ".relay_gateway",
    "CallerContext": ".relay_gateway",
    "OpenAIGenerationClient": ".provider_client",
    "DocumentTree": ".document_tree",
    "DocumentMutator": ".document_mutator",
    "ConversationStore": ".conversation_store",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name], __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
