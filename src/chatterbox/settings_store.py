import json
import logging
import os
import re
from copy import deepcopy
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
IMAGE_SIZES = ("1024x1024", "1792x1024")
DEFAULT_IMAGE_SIZE = IMAGE_SIZES[0]

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    image_size: str = DEFAULT_IMAGE_SIZE
    store_images: bool = False

    def has_api_key(self) -> bool:
        return bool(self.api_key)


class SettingsStore:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._settings_file = self.base_dir / "settings.json"

    def load(self) -> Settings:
        try:
            raw = self._read_json(self._settings_file, {})
        except (json.JSONDecodeError, UnicodeDecodeError):
            raw = None
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed settings file %s", self._settings_file)
            raw = {}
        return _coerce_settings(raw)

    def save(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        image_size: Optional[str] = None,
        store_images: Optional[bool] = None,
    ) -> Settings:
        current = asdict(self.load())
        if api_key is not None:
            current["api_key"] = sanitize_text_field(api_key)
        if model is not None:
            current["model"] = sanitize_text_field(model)
        if image_size is not None:
            current["image_size"] = sanitize_text_field(image_size)
        if store_images is not None:
            current["store_images"] = bool(store_images)
        settings = _coerce_settings(current)
        self._write_json(self._settings_file, asdict(settings))
        logger.info(
            "Saved settings (model=%s, image_size=%s, store_images=%s, api_key=%s)",
            settings.model,
            settings.image_size,
            settings.store_images,
            "set" if settings.api_key else "empty",
        )
        return settings

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return deepcopy(default)
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _write_json(self, path: Path, payload: Any) -> None:
        tmp_path = path.with_name(f"{path.name}.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)


def sanitize_text_field(value: Any) -> str:
    text = _CONTROL_CHARS.sub(" ", str(value or ""))
    return " ".join(text.split())


def mask_api_key(api_key: str) -> str:
    if not api_key:
        return "(not configured)"
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:3]}...{api_key[-4:]}"


def _coerce_settings(raw: Dict[str, Any]) -> Settings:
    model = sanitize_text_field(raw.get("model", "")) or DEFAULT_MODEL
    image_size = sanitize_text_field(raw.get("image_size", ""))
    if image_size not in IMAGE_SIZES:
        image_size = DEFAULT_IMAGE_SIZE
    return Settings(
        api_key=sanitize_text_field(raw.get("api_key", "")),
        model=model,
        image_size=image_size,
        store_images=bool(raw.get("store_images", False)),
    )
