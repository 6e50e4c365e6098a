import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional, Protocol

from .generation import (
    AUTH_MISSING,
    KIND_AUDIO,
    KIND_TEXT,
    GENERATION_KINDS,
    NOT_IMPLEMENTED,
    PERMISSION_DENIED,
    PROVIDER_ERROR,
    VALIDATION_FAILURE,
    ErrorResult,
    GenerationRequest,
    GenerationResult,
    result_to_envelope_data,
)
from .security_tokens import SecurityTokens
from .settings_store import Settings, SettingsStore, sanitize_text_field

logger = logging.getLogger(__name__)

RELAY_ACTION = "generate"
EDIT_CAPABILITY = "edit_posts"


class GenerationProvider(Protocol):
    def generate(self, request: GenerationRequest, settings: Settings) -> GenerationResult:
        ...


@dataclass(frozen=True)
class CallerContext:
    session_id: str
    nonce: Optional[str] = None
    capabilities: FrozenSet[str] = field(default_factory=lambda: frozenset({EDIT_CAPABILITY}))

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class Envelope:
    success: bool
    data: Any
    # Kept for in-process callers only; never serialized.
    classification: str = ""

    @classmethod
    def from_result(cls, result: GenerationResult) -> "Envelope":
        if isinstance(result, ErrorResult):
            return cls(success=False, data=result.message, classification=result.classification)
        return cls(success=True, data=result_to_envelope_data(result))

    @classmethod
    def failure(cls, message: str, classification: str) -> "Envelope":
        return cls(success=False, data=message, classification=classification)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class RelayGateway:
    def __init__(
        self,
        tokens: SecurityTokens,
        settings_store: SettingsStore,
        provider: GenerationProvider,
    ) -> None:
        self.tokens = tokens
        self.settings_store = settings_store
        self.provider = provider

    def handle_form(self, form: Mapping[str, Any], caller: CallerContext) -> Envelope:
        action = str(form.get("action", "") or "").strip()
        if action != RELAY_ACTION:
            logger.warning("Rejected relay request with action %r", action)
            return Envelope.failure("Invalid action", VALIDATION_FAILURE)
        nonce = form.get("nonce")
        return self.handle(
            raw_prompt=str(form.get("prompt", "") or ""),
            raw_kind=str(form.get("type", "") or ""),
            caller=replace(caller, nonce=str(nonce) if nonce else None),
        )

    def handle(self, raw_prompt: str, raw_kind: str, caller: CallerContext) -> Envelope:
        if not self.tokens.verify(caller.session_id, caller.nonce):
            logger.warning("Rejected relay request: invalid token (session=%s)", caller.session_id)
            return Envelope.failure("Invalid token", PERMISSION_DENIED)

        if not caller.can(EDIT_CAPABILITY):
            logger.warning("Rejected relay request: missing %s (session=%s)", EDIT_CAPABILITY, caller.session_id)
            return Envelope.failure("Insufficient permissions", PERMISSION_DENIED)

        request = GenerationRequest(prompt=sanitize_text_field(raw_prompt), kind=normalize_kind(raw_kind))
        ok, reason = request.validate()
        if not ok:
            return Envelope.failure(reason, VALIDATION_FAILURE)
        kind = request.kind
        if kind == KIND_AUDIO:
            return Envelope.failure("Audio generation is not supported", NOT_IMPLEMENTED)

        settings = self.settings_store.load()
        if not settings.has_api_key():
            return Envelope.failure("API key not configured", AUTH_MISSING)

        try:
            result = self.provider.generate(request, settings)
        except Exception as exc:
            logger.exception("Provider raised while generating %s content", kind)
            return Envelope.failure(str(exc) or "Error generating content", PROVIDER_ERROR)

        if isinstance(result, ErrorResult):
            logger.info("Generation failed (%s): %s", result.classification, result.message)
        else:
            logger.info("Generated %s content for session %s", kind, caller.session_id)
        return Envelope.from_result(result)


def normalize_kind(raw_kind: str) -> str:
    kind = sanitize_text_field(raw_kind).lower()
    if not kind:
        return KIND_TEXT
    if kind not in GENERATION_KINDS:
        logger.warning("Unknown generation type %r, treating as text", kind)
        return KIND_TEXT
    return kind
