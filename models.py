"""Core data models for the word picture game."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SlotKind(str, Enum):
    SUBJECT = "Subject"
    OBJECT = "Object"
    VERB = "Verb"


# Storage order of the sentence slots.
SLOT_ORDER = (SlotKind.SUBJECT, SlotKind.OBJECT, SlotKind.VERB)

SLOT_LABELS = {
    SlotKind.SUBJECT: ("누가?", "Who?"),
    SlotKind.OBJECT: ("무엇을?", "What?"),
    SlotKind.VERB: ("해요?", "Does?"),
}


def slot_label(kind: SlotKind, use_secondary: bool = False) -> str:
    primary, secondary = SLOT_LABELS[kind]
    return secondary if use_secondary else primary


class SelectionStep(str, Enum):
    STEP0 = "STEP0"
    STEP1 = "STEP1"
    STEP2 = "STEP2"
    COMPLETE = "COMPLETE"


class CoordinatorState(str, Enum):
    TITLE = "TITLE"
    SELECTING = "SELECTING"
    GENERATING = "GENERATING"
    VIEWING = "VIEWING"


class ResultKind(str, Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class WordEntry:
    """A catalog word.

    ``prompt`` is the machine-facing text sent to the image service; when it
    is not given the primary text is used.
    """

    text_primary: str
    text_secondary: str
    slot_kind: SlotKind
    prompt: str = ""
    icon: Optional[str] = None
    sound: Optional[str] = None
    identity: Optional[str] = None

    @property
    def prompt_text(self) -> str:
        return self.prompt or self.text_primary

    def text(self, use_secondary: bool = False) -> str:
        return self.text_secondary if use_secondary else self.text_primary


@dataclass(frozen=True)
class GenerationRequest:
    sanitized_prompt: str
    negative_prompt: str
    image_count: int
    timeout_s: float
    body: dict = field(default_factory=dict)


@dataclass
class GenerationResult:
    kind: ResultKind
    images: list[Any]
    placeholder_count: int = 0

    @property
    def is_fallback(self) -> bool:
        return self.kind == ResultKind.FALLBACK

    @property
    def decoded_count(self) -> int:
        return len(self.images) - self.placeholder_count


@dataclass
class TransportResponse:
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
