"""Step-based word selection: who, then what, then does."""

from __future__ import annotations

import random
from typing import Callable, Optional

from errors import SelectionMisuseError
from events import EventSource, Subscription
from interfaces import WordSupply
from logger import get_logger
from models import SLOT_ORDER, SelectionStep, SlotKind, WordEntry

logger = get_logger("selection")

MISSING_WORD = "???"

_STEPS = (SelectionStep.STEP0, SelectionStep.STEP1, SelectionStep.STEP2, SelectionStep.COMPLETE)

CompleteCallback = Callable[[], None]


class SelectionStateMachine:
    """Holds the three sentence slots and the current step.

    Slots fill strictly in storage order (subject, object, verb). The
    candidate pool offered for a step is expected to contain only entries of
    that step's kind; with ``strict=True`` a mismatched entry is rejected.
    """

    def __init__(
        self,
        word_supply: Optional[WordSupply] = None,
        candidates_per_step: int = 4,
        strict: bool = False,
        on_complete: Optional[CompleteCallback] = None,
    ) -> None:
        self._word_supply = word_supply
        self._candidates_per_step = candidates_per_step
        self._strict = strict
        self._completed = EventSource[CompleteCallback]()
        if on_complete is not None:
            self._completed.subscribe(on_complete)

        self._slots: list[Optional[WordEntry]] = [None] * len(SLOT_ORDER)
        self._current_step = 0

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def state(self) -> SelectionStep:
        return _STEPS[self._current_step]

    @property
    def is_complete(self) -> bool:
        return self._current_step >= len(SLOT_ORDER)

    @property
    def expected_kind(self) -> Optional[SlotKind]:
        if self.is_complete:
            return None
        return SLOT_ORDER[self._current_step]

    @property
    def slots(self) -> tuple[Optional[WordEntry], ...]:
        return tuple(self._slots)

    @property
    def filled_count(self) -> int:
        return sum(1 for slot in self._slots if slot is not None)

    def subscribe_complete(self, listener: CompleteCallback) -> Subscription:
        return self._completed.subscribe(listener)

    def candidates(
        self,
        count: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> list[WordEntry]:
        kind = self.expected_kind
        if kind is None or self._word_supply is None:
            return []
        pool = list(self._word_supply.words_for_slot(kind))
        if not pool:
            logger.error(f"No words found for {kind.value}")
            return []
        limit = self._candidates_per_step if count is None else count
        return (rng or random).sample(pool, min(limit, len(pool)))

    def select_word(self, entry: WordEntry) -> None:
        if self.is_complete:
            raise SelectionMisuseError("selection is already complete; reset first")

        expected = SLOT_ORDER[self._current_step]
        if entry.slot_kind != expected:
            if self._strict:
                raise SelectionMisuseError(
                    f"step {self._current_step} expects {expected.value}, "
                    f"got {entry.slot_kind.value}"
                )
            logger.warning(
                f"Step {self._current_step} expects {expected.value}, "
                f"got {entry.slot_kind.value} ({entry.text_primary})"
            )

        self._slots[self._current_step] = entry
        self._current_step += 1

        if self.is_complete:
            logger.debug(f"Selection complete: {self.compose_prompt()}")
            self._completed.emit()

    def reset(self) -> None:
        self._slots = [None] * len(SLOT_ORDER)
        self._current_step = 0

    def compose_prompt(self, allow_partial: bool = False) -> str:
        """Return ``"{subject} {verb} {object}"`` in machine-facing text."""
        if not self.is_complete and not allow_partial:
            raise SelectionMisuseError("cannot compose a prompt before all words are picked")
        subject, obj, verb = self._slots
        words = [w.prompt_text for w in (subject, verb, obj) if w is not None]
        return " ".join(words)

    def compose_display_sentence(self, use_secondary: bool = False) -> str:
        subject, obj, verb = (
            w.text(use_secondary) if w is not None else MISSING_WORD for w in self._slots
        )
        if use_secondary:
            return f"{subject} {verb} {obj}"
        return f"{subject} {obj} {verb}"

    def dispose(self) -> None:
        self._completed.clear()
