from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

KIND_TEXT = "text"
KIND_IMAGE = "image"
KIND_AUDIO = "audio"

GENERATION_KINDS = {KIND_TEXT, KIND_IMAGE, KIND_AUDIO}

AUTH_MISSING = "auth_missing"
PERMISSION_DENIED = "permission_denied"
VALIDATION_FAILURE = "validation_failure"
TRANSPORT_FAILURE = "transport_failure"
PROVIDER_ERROR = "provider_error"
MALFORMED_RESPONSE = "malformed_response"
STORAGE_FAILURE = "storage_failure"
NOT_IMPLEMENTED = "not_implemented"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    kind: str = KIND_TEXT

    def validate(self) -> Tuple[bool, str]:
        if not self.prompt.strip():
            return False, "Prompt is required"
        if self.kind not in GENERATION_KINDS:
            return False, f"Unknown generation type: {self.kind}"
        return True, "ok"


@dataclass(frozen=True)
class TextResult:
    content: str
    kind: str = KIND_TEXT


@dataclass(frozen=True)
class ImageResult:
    image_url: str
    source_prompt: str
    content: str = ""
    attachment_id: Optional[str] = None
    kind: str = KIND_IMAGE


@dataclass(frozen=True)
class ErrorResult:
    message: str
    classification: str


GenerationResult = Union[TextResult, ImageResult, ErrorResult]


def describe_image_prompt(prompt: str) -> str:
    return f"Generated image from prompt: {prompt}"


def result_to_envelope_data(result: GenerationResult) -> Any:
    if isinstance(result, ErrorResult):
        return result.message
    if isinstance(result, ImageResult):
        data: Dict[str, Any] = {
            "content": result.content or describe_image_prompt(result.source_prompt),
            "imageUrl": result.image_url,
            "type": KIND_IMAGE,
        }
        if result.attachment_id:
            data["attachmentId"] = result.attachment_id
        return data
    return {"content": result.content, "type": KIND_TEXT}


def result_from_envelope(data: Any, prompt: str) -> GenerationResult:
    if not isinstance(data, dict):
        raise ValueError("Error generating content")

    kind = str(data.get("type", "") or KIND_TEXT)
    content = data.get("content")
    if kind == KIND_IMAGE:
        image_url = str(data.get("imageUrl", "") or "").strip()
        if not image_url:
            raise ValueError("Error generating image")
        attachment_id = data.get("attachmentId")
        return ImageResult(
            image_url=image_url,
            source_prompt=prompt,
            content=str(content or describe_image_prompt(prompt)),
            attachment_id=str(attachment_id) if attachment_id else None,
        )

    if kind != KIND_TEXT or not isinstance(content, str):
        raise ValueError("Error generating response")
    return TextResult(content=content)
