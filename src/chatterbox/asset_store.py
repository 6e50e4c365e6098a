import json
import logging
import uuid
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MediaRecord = Dict[str, Any]

MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


class AssetStore:
    def __init__(self, base_dir: Path, base_url: Optional[str] = None) -> None:
        self.base_dir = Path(base_dir)
        self.upload_dir = self.base_dir / "uploads"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self._media_file = self.base_dir / "media.jsonl"
        self.base_url = (base_url or str(self.upload_dir)).rstrip("/")

    def store_image(self, data: bytes, description: str, mime_type: str = "image/png") -> MediaRecord:
        if not data:
            raise ValueError("Refusing to store empty image data.")
        extension = MIME_EXTENSIONS.get(mime_type)
        if extension is None:
            raise ValueError(f"Unsupported image type: {mime_type}")

        media_id = _new_id("att")
        file_name = f"{media_id}{extension}"
        path = self.upload_dir / file_name
        with path.open("wb") as handle:
            handle.write(data)

        record = {
            "id": media_id,
            "url": f"{self.base_url}/{file_name}",
            "file": str(path),
            "mime_type": mime_type,
            "title": _build_title(description),
            "post_content": description,
            "created_at": _now_utc_iso(),
        }
        _append_jsonl(self._media_file, record)
        logger.info("Stored media %s (%d bytes)", media_id, len(data))
        return deepcopy(record)

    def list_media(self) -> List[MediaRecord]:
        records = _read_jsonl(self._media_file)
        records.sort(key=lambda r: r.get("created_at", ""))
        return deepcopy(records)

    def get_media(self, media_id: str) -> Optional[MediaRecord]:
        for record in _read_jsonl(self._media_file):
            if record.get("id") == media_id:
                return deepcopy(record)
        return None


def _build_title(description: str, max_chars: int = 60) -> str:
    value = " ".join((description or "").split())
    if not value:
        return "Generated image"
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3].rstrip() + "..."


def _read_jsonl(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    rows: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            raw = line.strip()
            if not raw:
                continue
            rows.append(json.loads(raw))
    return rows


def _append_jsonl(path: Path, row: Dict[str, Any]) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(row, ensure_ascii=False) + "\n")


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _now_utc_iso() -> str:
    return datetime.now(tz=timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
