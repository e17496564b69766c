"""Static word catalog that supplies candidate words per sentence slot."""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Iterable, Optional, Sequence

from content_filter import PromptSafetyFilter
from logger import get_logger
from models import SlotKind, WordEntry

logger = get_logger("word_catalog")

# (primary, secondary, prompt, slot)
DEFAULT_WORDS = (
    ("고양이가", "cat", "a cat", SlotKind.SUBJECT),
    ("강아지가", "puppy", "a puppy", SlotKind.SUBJECT),
    ("로봇이", "robot", "a robot", SlotKind.SUBJECT),
    ("공룡이", "dinosaur", "a dinosaur", SlotKind.SUBJECT),
    ("토끼가", "bunny", "a bunny", SlotKind.SUBJECT),
    ("곰이", "bear", "a teddy bear", SlotKind.SUBJECT),
    ("피자를", "pizza", "pizza", SlotKind.OBJECT),
    ("케이크를", "cake", "a birthday cake", SlotKind.OBJECT),
    ("풍선을", "balloon", "a balloon", SlotKind.OBJECT),
    ("공을", "ball", "a ball", SlotKind.OBJECT),
    ("사과를", "apple", "an apple", SlotKind.OBJECT),
    ("책을", "book", "a book", SlotKind.OBJECT),
    ("먹어요", "eats", "eating", SlotKind.VERB),
    ("던져요", "throws", "throwing", SlotKind.VERB),
    ("안아요", "hugs", "hugging", SlotKind.VERB),
    ("그려요", "draws", "drawing", SlotKind.VERB),
    ("읽어요", "reads", "reading", SlotKind.VERB),
    ("타요", "rides", "riding", SlotKind.VERB),
)


def parse_slot_kind(value: object) -> SlotKind:
    """Map a catalog slot name to a SlotKind; unknown names count as Subject."""
    try:
        return SlotKind(str(value))
    except ValueError:
        return SlotKind.SUBJECT


class WordCatalog:
    def __init__(
        self,
        entries: Iterable[WordEntry],
        safety_filter: Optional[PromptSafetyFilter] = None,
    ) -> None:
        words = list(entries)
        if safety_filter is not None:
            unsafe = [w for w in words if not safety_filter.is_word_safe(w)]
            for word in unsafe:
                logger.warning(f"Dropping unsafe catalog word: {word.text_secondary}")
            words = [w for w in words if w not in unsafe]
        self._words = tuple(words)

    @classmethod
    def default(cls, safety_filter: Optional[PromptSafetyFilter] = None) -> "WordCatalog":
        entries = [
            WordEntry(
                text_primary=primary,
                text_secondary=secondary,
                slot_kind=kind,
                prompt=prompt,
                identity=f"{kind.value.lower()}:{secondary}",
            )
            for primary, secondary, prompt, kind in DEFAULT_WORDS
        ]
        return cls(entries, safety_filter)

    @classmethod
    def from_json(
        cls,
        path: Path,
        safety_filter: Optional[PromptSafetyFilter] = None,
    ) -> "WordCatalog":
        """Load ``{"words": [{"primary", "secondary", "slot", ...}]}`` from disk.

        A missing or unreadable file yields an empty catalog.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.error(f"Word catalog not loaded from {path}: {exc}")
            return cls([], safety_filter)

        raw_words = data.get("words", []) if isinstance(data, dict) else []
        entries = []
        for item in raw_words:
            if not isinstance(item, dict):
                continue
            primary = str(item.get("primary", ""))
            secondary = str(item.get("secondary", ""))
            if not primary and not secondary:
                continue
            kind = parse_slot_kind(item.get("slot"))
            entries.append(
                WordEntry(
                    text_primary=primary or secondary,
                    text_secondary=secondary or primary,
                    slot_kind=kind,
                    prompt=str(item.get("prompt", "")),
                    icon=item.get("icon"),
                    sound=item.get("sound"),
                    identity=item.get("id") or f"{kind.value.lower()}:{secondary or primary}",
                )
            )
        logger.info(f"Loaded {len(entries)} words from {path}")
        return cls(entries, safety_filter)

    def all_words(self) -> Sequence[WordEntry]:
        return self._words

    def words_for_slot(self, kind: SlotKind) -> Sequence[WordEntry]:
        return tuple(w for w in self._words if w.slot_kind == kind)

    def shuffled(self, rng: Optional[random.Random] = None) -> list[WordEntry]:
        words = list(self._words)
        (rng or random).shuffle(words)
        return words

    def pick(
        self,
        kind: SlotKind,
        count: int,
        rng: Optional[random.Random] = None,
    ) -> list[WordEntry]:
        pool = list(self.words_for_slot(kind))
        if not pool:
            logger.error(f"No words found for {kind.value}")
            return []
        return (rng or random).sample(pool, min(count, len(pool)))

    def __len__(self) -> int:
        return len(self._words)
