import base64
import binascii
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, Optional

from .asset_store import AssetStore
from .generation import (
    AUTH_MISSING,
    KIND_AUDIO,
    KIND_IMAGE,
    MALFORMED_RESPONSE,
    NOT_IMPLEMENTED,
    PROVIDER_ERROR,
    STORAGE_FAILURE,
    TRANSPORT_FAILURE,
    ErrorResult,
    GenerationRequest,
    GenerationResult,
    ImageResult,
    TextResult,
    describe_image_prompt,
)
from .settings_store import Settings

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
IMAGE_MODEL = "dall-e-3"
TEXT_TEMPERATURE = 0.7
TEXT_MAX_TOKENS = 10000
TIMEOUT_SECONDS = 30

TEXT_MALFORMED_MESSAGE = "Error generating response"
IMAGE_MALFORMED_MESSAGE = "Error generating image"

Opener = Callable[..., Any]


class ProviderFailure(RuntimeError):
    def __init__(self, message: str, classification: str) -> None:
        super().__init__(message)
        self.message = message
        self.classification = classification


class OpenAIGenerationClient:
    def __init__(
        self,
        asset_store: Optional[AssetStore] = None,
        opener: Optional[Opener] = None,
        base_url: str = OPENAI_BASE_URL,
        timeout_seconds: int = TIMEOUT_SECONDS,
        max_tokens: int = TEXT_MAX_TOKENS,
    ) -> None:
        self.asset_store = asset_store
        self.opener = opener or urllib.request.urlopen
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens

    def generate(self, request: GenerationRequest, settings: Settings) -> GenerationResult:
        if not settings.has_api_key():
            return ErrorResult("API key not configured", AUTH_MISSING)
        if request.kind == KIND_AUDIO:
            return ErrorResult("Audio generation is not supported", NOT_IMPLEMENTED)

        try:
            if request.kind == KIND_IMAGE:
                return self._generate_image(request.prompt, settings)
            return self._generate_text(request.prompt, settings)
        except ProviderFailure as exc:
            logger.warning("Provider call failed (%s): %s", exc.classification, exc.message)
            return ErrorResult(exc.message, exc.classification)

    def build_text_payload(self, prompt: str, settings: Settings) -> Dict[str, Any]:
        return {
            "model": settings.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": TEXT_TEMPERATURE,
            "max_tokens": self.max_tokens,
        }

    def build_image_payload(self, prompt: str, settings: Settings) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": IMAGE_MODEL,
            "prompt": prompt,
            "n": 1,
            "size": settings.image_size,
        }
        if self._stores_images(settings):
            payload["response_format"] = "b64_json"
        return payload

    def _generate_text(self, prompt: str, settings: Settings) -> TextResult:
        payload = self.build_text_payload(prompt, settings)
        logger.debug("Requesting chat completion (model=%s)", settings.model)
        body = self._post_json("/chat/completions", payload, settings.api_key, TEXT_MALFORMED_MESSAGE)
        return TextResult(content=parse_chat_completion(body))

    def _generate_image(self, prompt: str, settings: Settings) -> ImageResult:
        payload = self.build_image_payload(prompt, settings)
        logger.debug("Requesting image generation (size=%s)", settings.image_size)
        body = self._post_json("/images/generations", payload, settings.api_key, IMAGE_MALFORMED_MESSAGE)
        content = describe_image_prompt(prompt)

        if "response_format" not in payload:
            return ImageResult(image_url=parse_image_url(body), source_prompt=prompt, content=content)

        image_bytes = parse_image_b64(body)
        try:
            record = self.asset_store.store_image(image_bytes, description=prompt)
        except (OSError, ValueError) as exc:
            raise ProviderFailure(f"Could not store generated image: {exc}", STORAGE_FAILURE) from exc
        return ImageResult(
            image_url=record["url"],
            source_prompt=prompt,
            content=content,
            attachment_id=record["id"],
        )

    def _stores_images(self, settings: Settings) -> bool:
        return settings.store_images and self.asset_store is not None

    def _post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        api_key: str,
        malformed_message: str,
    ) -> Dict[str, Any]:
        body = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=f"{self.base_url}{path}",
            data=body,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )

        try:
            with self.opener(request, timeout=self.timeout_seconds) as response:
                raw_bytes = response.read()
        except urllib.error.HTTPError as exc:
            details = exc.read().decode("utf-8", errors="replace")
            raise ProviderFailure(_http_error_message(details, exc.code), PROVIDER_ERROR) from exc
        except urllib.error.URLError as exc:
            raise ProviderFailure(str(exc.reason), TRANSPORT_FAILURE) from exc
        except OSError as exc:
            raise ProviderFailure(str(exc) or "Request timed out", TRANSPORT_FAILURE) from exc

        try:
            parsed = json.loads(raw_bytes.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderFailure(malformed_message, MALFORMED_RESPONSE) from exc
        if not isinstance(parsed, dict):
            raise ProviderFailure(malformed_message, MALFORMED_RESPONSE)

        error_message = _extract_error_message(parsed)
        if error_message:
            raise ProviderFailure(error_message, PROVIDER_ERROR)
        return parsed


def parse_chat_completion(body: Dict[str, Any]) -> str:
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise ProviderFailure(TEXT_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise ProviderFailure(TEXT_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    return content


def parse_image_url(body: Dict[str, Any]) -> str:
    url = _first_image_field(body, "url")
    if not url.startswith(("http://", "https://")):
        raise ProviderFailure(IMAGE_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    return url


def parse_image_b64(body: Dict[str, Any]) -> bytes:
    encoded = _first_image_field(body, "b64_json")
    try:
        decoded = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ProviderFailure(IMAGE_MALFORMED_MESSAGE, MALFORMED_RESPONSE) from exc
    if not decoded:
        raise ProviderFailure(IMAGE_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    return decoded


def _first_image_field(body: Dict[str, Any], field_name: str) -> str:
    data = body.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise ProviderFailure(IMAGE_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    value = data[0].get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise ProviderFailure(IMAGE_MALFORMED_MESSAGE, MALFORMED_RESPONSE)
    return value.strip()


def _extract_error_message(body: Dict[str, Any]) -> str:
    error = body.get("error")
    if not error:
        return ""
    if isinstance(error, dict):
        return str(error.get("message", "") or "").strip() or "Provider returned an error"
    return str(error).strip()


def _http_error_message(details: str, status: int) -> str:
    try:
        parsed = json.loads(details)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        message = _extract_error_message(parsed)
        if message:
            return message
    return f"HTTP error {status}"
