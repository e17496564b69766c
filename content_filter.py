"""Prompt safety filter for child-friendly image prompts."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from logger import get_logger
from models import WordEntry

logger = get_logger("content_filter")

BLOCKED_TERMS = (
    # violence
    "violence", "violent", "blood", "bloody", "gore", "gory",
    "kill", "killing", "murder", "death", "dead", "die",
    "weapon", "gun", "knife", "sword", "fight", "war", "battle",
    "attack", "hurt", "pain", "torture", "abuse",
    # horror
    "horror", "scary", "terrifying", "nightmare", "monster",
    "zombie", "ghost", "demon", "devil", "evil", "dark",
    "creepy", "disturbing", "grotesque",
    # adult content
    "nude", "naked", "sexy", "sexual", "adult", "erotic",
    "nsfw", "explicit", "provocative",
    # other
    "drug", "drugs", "alcohol", "cigarette", "smoking",
    "inappropriate", "offensive", "hate", "racist",
)

SAFETY_SUFFIX = (
    ", child-friendly, cute art style, safe for children, no violence, "
    "no scary elements, bright and cheerful, wholesome"
)

NEGATIVE_PROMPT = ", ".join(
    (
        "violence", "blood", "gore", "scary", "horror", "dark", "weapons",
        "inappropriate", "nsfw", "adult content", "disturbing", "creepy",
        "nightmare", "monster", "zombie", "death",
    )
)

_WHITESPACE = re.compile(r"\s+")


class PromptSafetyFilter:
    """Removes blocked words from user-composed prompts.

    Detection and removal share one whole-word, case-insensitive pattern so
    they always agree: ``"skill"`` is never treated as ``"kill"``.
    """

    def __init__(self, terms: Iterable[str] = BLOCKED_TERMS, enabled: bool = True) -> None:
        self.enabled = enabled
        self._terms = {term.lower() for term in terms if term}
        self._pattern = self._compile()

    @property
    def blocked_terms(self) -> frozenset[str]:
        return frozenset(self._terms)

    def add_blocked_term(self, term: str) -> None:
        term = term.strip().lower() if term else ""
        if not term or term in self._terms:
            return
        self._terms.add(term)
        self._pattern = self._compile()

    def find_blocked_terms(self, text: Optional[str]) -> list[str]:
        if not self.enabled or not text or self._pattern is None:
            return []
        return [match.group(0).lower() for match in self._pattern.finditer(text)]

    def contains_blocked_content(self, text: Optional[str]) -> bool:
        found = self.find_blocked_terms(text)
        if found:
            logger.warning(f"Blocked keyword detected: {found[0]}")
        return bool(found)

    def is_word_safe(self, entry: Optional[WordEntry]) -> bool:
        if entry is None:
            return False
        return not (
            self.contains_blocked_content(entry.text_primary)
            or self.contains_blocked_content(entry.text_secondary)
            or self.contains_blocked_content(entry.prompt)
        )

    def sanitize(self, raw_text: Optional[str]) -> str:
        text = raw_text or ""
        if self.enabled and self._pattern is not None:
            removed = self.find_blocked_terms(text)
            if removed:
                logger.info(f"Removed blocked words from prompt: {', '.join(removed)}")
                text = self._pattern.sub("", text)
        text = _WHITESPACE.sub(" ", text).strip()
        return text + SAFETY_SUFFIX

    def negative_prompt(self) -> str:
        return NEGATIVE_PROMPT

    def _compile(self) -> Optional[re.Pattern[str]]:
        if not self._terms:
            return None
        alternatives = "|".join(
            re.escape(term) for term in sorted(self._terms, key=len, reverse=True)
        )
        return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)
