from __future__ import annotations

import json
import random
from pathlib import Path

from content_filter import PromptSafetyFilter
from models import SlotKind, slot_label
from word_catalog import WordCatalog, parse_slot_kind


def test_default_catalog_has_six_words_per_slot() -> None:
    catalog = WordCatalog.default()

    assert len(catalog) == 18
    for kind in SlotKind:
        words = catalog.words_for_slot(kind)
        assert len(words) == 6
        assert all(w.slot_kind == kind for w in words)


def test_pick_samples_without_repeats() -> None:
    catalog = WordCatalog.default()
    picked = catalog.pick(SlotKind.VERB, 4, rng=random.Random(3))

    assert len(picked) == 4
    assert len(set(picked)) == 4
    assert catalog.pick(SlotKind.VERB, 50) and len(catalog.pick(SlotKind.VERB, 50)) == 6


def test_shuffled_keeps_every_word() -> None:
    catalog = WordCatalog.default()
    shuffled = catalog.shuffled(random.Random(1))

    assert sorted(w.text_secondary for w in shuffled) == sorted(
        w.text_secondary for w in catalog.all_words()
    )


def test_from_json_reads_words(tmp_path: Path) -> None:
    path = tmp_path / "words.json"
    path.write_text(
        json.dumps(
            {
                "words": [
                    {"primary": "고양이가", "secondary": "cat", "slot": "Subject", "prompt": "a cat"},
                    {"primary": "먹어요", "secondary": "eats", "slot": "Verb", "sound": "eat.wav"},
                    {"primary": "별", "secondary": "star", "slot": "Adjective"},
                    {"slot": "Object"},
                    "not a word",
                ]
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    catalog = WordCatalog.from_json(path)

    assert len(catalog) == 3
    cat = catalog.words_for_slot(SlotKind.SUBJECT)[0]
    assert cat.prompt_text == "a cat"
    assert catalog.words_for_slot(SlotKind.VERB)[0].sound == "eat.wav"
    # unknown slot names count as subjects
    assert [w.text_secondary for w in catalog.words_for_slot(SlotKind.SUBJECT)] == ["cat", "star"]


def test_from_json_missing_file_is_empty(tmp_path: Path) -> None:
    catalog = WordCatalog.from_json(tmp_path / "missing.json")
    assert len(catalog) == 0
    assert catalog.pick(SlotKind.SUBJECT, 4) == []


def test_unsafe_words_are_dropped_with_filter(tmp_path: Path) -> None:
    path = tmp_path / "words.json"
    path.write_text(
        json.dumps(
            {
                "words": [
                    {"primary": "유령이", "secondary": "ghost", "slot": "Subject"},
                    {"primary": "토끼가", "secondary": "bunny", "slot": "Subject"},
                ]
            }
        ),
        encoding="utf-8",
    )

    catalog = WordCatalog.from_json(path, safety_filter=PromptSafetyFilter())

    assert [w.text_secondary for w in catalog.all_words()] == ["bunny"]


def test_slot_helpers() -> None:
    assert parse_slot_kind("Verb") == SlotKind.VERB
    assert parse_slot_kind(None) == SlotKind.SUBJECT
    assert slot_label(SlotKind.OBJECT) == "무엇을?"
    assert slot_label(SlotKind.OBJECT, use_secondary=True) == "What?"
