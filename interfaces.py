"""Protocol interfaces for the collaborators around the generation pipeline."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from config import GenerationSettings
from models import GenerationResult, SlotKind, TransportResponse, WordEntry


class WordSupply(Protocol):
    def words_for_slot(self, kind: SlotKind) -> Sequence[WordEntry]: ...


class Transport(Protocol):
    async def post_json(
        self,
        url: str,
        headers: dict[str, str],
        body: dict,
        timeout_s: float,
    ) -> TransportResponse: ...


class PresentationTask(Protocol):
    def run(self, on_complete: Callable[[], None]) -> None: ...


class Display(Protocol):
    def show(self, result: GenerationResult) -> None: ...

    def clear(self) -> None: ...


class ImageGenerator(Protocol):
    async def generate(self, keywords: str, image_count: Optional[int] = None) -> GenerationResult: ...

    def fallback(self, image_count: int) -> GenerationResult: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get(self, name: str, default: object = None) -> object: ...

    def set(self, name: str, value: object) -> None: ...

    def load_settings(self) -> GenerationSettings: ...
