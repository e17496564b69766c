"""Composition root: one owned instance of every pipeline component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from config import GenerationSettings
from content_filter import PromptSafetyFilter
from coordinator import ErrorCallback, GenerationCoordinator, StateCallback
from generation_client import GenerationClient, HttpxTransport
from interfaces import ConfigStore, Display, PresentationTask, Transport, WordSupply
from logger import get_logger
from selection import SelectionStateMachine
from word_catalog import WordCatalog

logger = get_logger("session")


@dataclass
class GameSession:
    settings: GenerationSettings
    safety_filter: PromptSafetyFilter
    word_supply: WordSupply
    selection: SelectionStateMachine
    client: GenerationClient
    coordinator: GenerationCoordinator
    transport: Transport
    _owns_transport: bool = field(default=False, repr=False)

    @classmethod
    def create(
        cls,
        settings: Optional[GenerationSettings] = None,
        presentation: Optional[PresentationTask] = None,
        display: Optional[Display] = None,
        word_supply: Optional[WordSupply] = None,
        transport: Optional[Transport] = None,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        config_store: Optional[ConfigStore] = None,
    ) -> "GameSession":
        if settings is None and config_store is not None:
            settings = config_store.load_settings()
        settings = settings or GenerationSettings()
        safety_filter = PromptSafetyFilter()
        if word_supply is None:
            word_supply = WordCatalog.default(safety_filter)
        owns_transport = transport is None
        if transport is None:
            transport = HttpxTransport()
        if not settings.api_key:
            logger.warning("No API key configured, every picture will be a placeholder")

        selection = SelectionStateMachine(
            word_supply=word_supply,
            candidates_per_step=settings.candidates_per_step,
        )
        client = GenerationClient(settings, transport, safety_filter)
        coordinator = GenerationCoordinator(
            selection=selection,
            client=client,
            presentation=presentation,
            display=display,
            image_count=settings.image_count,
            min_words_required=settings.min_words_required,
            safety_filter=safety_filter,
            on_state_change=on_state_change,
            on_error=on_error,
        )
        return cls(
            settings=settings,
            safety_filter=safety_filter,
            word_supply=word_supply,
            selection=selection,
            client=client,
            coordinator=coordinator,
            transport=transport,
            _owns_transport=owns_transport,
        )

    async def aclose(self) -> None:
        self.coordinator.dispose()
        self.selection.dispose()
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> "GameSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
