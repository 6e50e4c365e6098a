from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .generation import KIND_IMAGE, KIND_TEXT, ErrorResult, GenerationResult, ImageResult

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
KIND_ERROR = "error"

MESSAGE_ROLES = {ROLE_USER, ROLE_ASSISTANT}
MESSAGE_KINDS = {KIND_TEXT, KIND_IMAGE, KIND_ERROR}


@dataclass(frozen=True)
class Message:
    role: str
    kind: str
    content: str
    image_url: Optional[str] = None
    timestamp: str = field(default_factory=lambda: _now_utc_iso())

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unknown message role: {self.role}")
        if self.kind not in MESSAGE_KINDS:
            raise ValueError(f"Unknown message kind: {self.kind}")

    def to_dict(self) -> Dict[str, str]:
        row = {"role": self.role, "type": self.kind, "content": self.content}
        if self.image_url:
            row["imageUrl"] = self.image_url
        return row


def user_message(prompt: str) -> Message:
    return Message(role=ROLE_USER, kind=KIND_TEXT, content=prompt)


def assistant_message(result: GenerationResult) -> Message:
    if isinstance(result, ErrorResult):
        return error_message(result.message)
    if isinstance(result, ImageResult):
        return Message(
            role=ROLE_ASSISTANT,
            kind=KIND_IMAGE,
            content=result.content,
            image_url=result.image_url,
        )
    return Message(role=ROLE_ASSISTANT, kind=KIND_TEXT, content=result.content)


def error_message(text: str) -> Message:
    return Message(role=ROLE_ASSISTANT, kind=KIND_ERROR, content=text)


class ConversationStore:
    def __init__(self) -> None:
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def all(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


def _now_utc_iso() -> str:
    return datetime.now(tz=timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
