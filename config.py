"""JSON-based config store and generation settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

STABILITY_API_URL = (
    "https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
)
API_KEY_ENV = "STABILITY_API_KEY"

# The sentence always has a subject, an object and a verb.
MAX_SLOTS = 3


@dataclass(frozen=True)
class GenerationSettings:
    api_url: str = STABILITY_API_URL
    api_key: str = ""
    image_count: int = 1
    timeout_s: float = 60.0
    width: int = 1024
    height: int = 1024
    cfg_scale: float = 7
    steps: int = 30
    placeholder_size: int = 512
    max_slots: int = MAX_SLOTS
    min_words_required: int = MAX_SLOTS
    candidates_per_step: int = 4


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "word_canvas" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self.set("api_key", key)

    def get(self, name: str, default: object = None) -> object:
        return self._read_all().get(name, default)

    def set(self, name: str, value: object) -> None:
        data = self._read_all()
        data[name] = value
        self._write_all(data)

    def load_settings(self) -> GenerationSettings:
        data = self._read_all()
        defaults = GenerationSettings()
        min_words = _as_int(data.get("min_words_required"), defaults.min_words_required)
        return GenerationSettings(
            api_url=str(data.get("api_url") or defaults.api_url),
            api_key=str(data.get("api_key") or os.getenv(API_KEY_ENV, "")),
            image_count=max(1, _as_int(data.get("image_count"), defaults.image_count)),
            timeout_s=_as_float(data.get("timeout_s"), defaults.timeout_s),
            width=_as_int(data.get("width"), defaults.width),
            height=_as_int(data.get("height"), defaults.height),
            cfg_scale=_as_float(data.get("cfg_scale"), defaults.cfg_scale),
            steps=_as_int(data.get("steps"), defaults.steps),
            placeholder_size=_as_int(data.get("placeholder_size"), defaults.placeholder_size),
            min_words_required=min(MAX_SLOTS, max(1, min_words)),
            candidates_per_step=_as_int(
                data.get("candidates_per_step"), defaults.candidates_per_step
            ),
        )

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
