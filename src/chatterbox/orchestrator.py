import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from .conversation_store import (
    ConversationStore,
    Message,
    ROLE_ASSISTANT,
    assistant_message,
    error_message,
    user_message,
)
from .generation import KIND_TEXT, GenerationResult, result_from_envelope

logger = logging.getLogger(__name__)

GREETING = "Chatterbox is ready! Try entering a prompt."
DEFAULT_ERROR = "Error generating content"


class RelayTransport(Protocol):
    async def send(self, prompt: str, kind: str) -> Dict[str, Any]:
        ...


class ResultApplier(Protocol):
    def apply(self, result: GenerationResult, original_prompt: str) -> Any:
        ...


@dataclass
class SessionState:
    is_loading: bool = False
    current_prompt: str = ""
    last_error: Optional[str] = None
    transcript: ConversationStore = field(default_factory=ConversationStore)


class GenerationSession:

    def __init__(
        self,
        transport: RelayTransport,
        mutator: ResultApplier,
        transcript: Optional[ConversationStore] = None,
    ) -> None:
        self.transport = transport
        self.mutator = mutator
        self.state = SessionState()
        if transcript is not None:
            self.state.transcript = transcript

    @property
    def transcript(self) -> ConversationStore:
        return self.state.transcript

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def current_prompt(self) -> str:
        return self.state.current_prompt

    @property
    def last_error(self) -> Optional[str]:
        return self.state.last_error

    def set_prompt(self, text: str) -> None:
        self.state.current_prompt = text or ""

    def can_submit(self, prompt: Optional[str] = None) -> bool:
        text = self.state.current_prompt if prompt is None else prompt
        return bool((text or "").strip()) and not self.state.is_loading

    def open_panel(self) -> bool:
        if len(self.transcript):
            return False
        self.transcript.append(Message(role=ROLE_ASSISTANT, kind=KIND_TEXT, content=GREETING))
        return True

    async def submit(self, kind: str = KIND_TEXT, prompt: Optional[str] = None) -> bool:
        text = self.state.current_prompt if prompt is None else prompt
        if not self.can_submit(text):
            logger.debug("Ignored submit (loading=%s)", self.state.is_loading)
            return False

        prompt_text = text.strip()
        self.transcript.append(user_message(prompt_text))
        self.state.is_loading = True
        self.state.last_error = None
        try:
            envelope = await self.transport.send(prompt_text, kind)
            if not isinstance(envelope, dict) or not envelope.get("success"):
                data = envelope.get("data") if isinstance(envelope, dict) else None
                raise RuntimeError(str(data or DEFAULT_ERROR))
            result = result_from_envelope(envelope.get("data"), prompt_text)
        except Exception as exc:
            message = str(exc) or DEFAULT_ERROR
            logger.warning("Generation failed: %s", message)
            self.state.last_error = message
            self.transcript.append(error_message(message))
        else:
            self.transcript.append(assistant_message(result))
            self._apply_to_document(result, prompt_text)
        finally:
            self.state.is_loading = False
            self.state.current_prompt = ""
        return True

    def _apply_to_document(self, result: GenerationResult, prompt_text: str) -> None:
        try:
            self.mutator.apply(result, prompt_text)
        except Exception as exc:
            logger.exception("Could not insert generated content into the document")
            self.state.last_error = f"Could not update the document: {exc}"
