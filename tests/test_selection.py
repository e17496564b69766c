from __future__ import annotations

import random

import pytest

from errors import SelectionMisuseError
from models import SelectionStep, SlotKind, WordEntry
from selection import MISSING_WORD, SelectionStateMachine
from word_catalog import WordCatalog

CAT = WordEntry("cat", "고양이", SlotKind.SUBJECT)
PIZZA = WordEntry("pizza", "피자", SlotKind.OBJECT)
EATS = WordEntry("eats", "먹어요", SlotKind.VERB)


def _complete(machine: SelectionStateMachine) -> None:
    for entry in (CAT, PIZZA, EATS):
        machine.select_word(entry)


# ---------------------------------------------------------------
# Step progression
# ---------------------------------------------------------------

def test_steps_advance_in_order() -> None:
    machine = SelectionStateMachine()
    seen = [(machine.current_step, machine.state, machine.expected_kind)]

    for entry in (CAT, PIZZA, EATS):
        machine.select_word(entry)
        seen.append((machine.current_step, machine.state, machine.expected_kind))

    assert seen == [
        (0, SelectionStep.STEP0, SlotKind.SUBJECT),
        (1, SelectionStep.STEP1, SlotKind.OBJECT),
        (2, SelectionStep.STEP2, SlotKind.VERB),
        (3, SelectionStep.COMPLETE, None),
    ]
    assert machine.is_complete is True
    assert machine.slots == (CAT, PIZZA, EATS)


def test_completion_fires_once_per_completion() -> None:
    completions: list[int] = []
    machine = SelectionStateMachine(on_complete=lambda: completions.append(1))

    _complete(machine)
    assert completions == [1]

    with pytest.raises(SelectionMisuseError):
        machine.select_word(EATS)
    assert completions == [1]

    machine.reset()
    assert completions == [1]
    _complete(machine)
    assert completions == [1, 1]


def test_scoped_subscription_stops_notifications() -> None:
    machine = SelectionStateMachine()
    calls: list[str] = []

    with machine.subscribe_complete(lambda: calls.append("done")):
        _complete(machine)
    machine.reset()
    _complete(machine)

    assert calls == ["done"]


@pytest.mark.parametrize("filled", [0, 1, 2, 3])
def test_reset_from_any_state_clears_slots(filled: int) -> None:
    machine = SelectionStateMachine()
    for entry in (CAT, PIZZA, EATS)[:filled]:
        machine.select_word(entry)

    machine.reset()

    assert machine.current_step == 0
    assert machine.state == SelectionStep.STEP0
    assert machine.slots == (None, None, None)
    assert machine.is_complete is False


def test_wrong_kind_is_trusted_by_default() -> None:
    machine = SelectionStateMachine()
    machine.select_word(EATS)

    assert machine.current_step == 1
    assert machine.slots[0] is EATS


def test_wrong_kind_is_rejected_when_strict() -> None:
    machine = SelectionStateMachine(strict=True)

    with pytest.raises(SelectionMisuseError):
        machine.select_word(PIZZA)
    assert machine.current_step == 0


# ---------------------------------------------------------------
# Sentence composition
# ---------------------------------------------------------------

def test_compose_prompt_is_subject_verb_object() -> None:
    machine = SelectionStateMachine()
    _complete(machine)

    assert machine.compose_prompt() == "cat eats pizza"


def test_compose_prompt_uses_machine_text() -> None:
    machine = SelectionStateMachine()
    machine.select_word(WordEntry("고양이가", "cat", SlotKind.SUBJECT, prompt="a cat"))
    machine.select_word(WordEntry("피자를", "pizza", SlotKind.OBJECT, prompt="pizza"))
    machine.select_word(WordEntry("먹어요", "eats", SlotKind.VERB, prompt="eating"))

    assert machine.compose_prompt() == "a cat eating pizza"


def test_compose_prompt_requires_complete_selection() -> None:
    machine = SelectionStateMachine()
    machine.select_word(CAT)

    with pytest.raises(SelectionMisuseError):
        machine.compose_prompt()
    assert machine.compose_prompt(allow_partial=True) == "cat"


def test_primary_display_keeps_storage_order() -> None:
    machine = SelectionStateMachine()
    _complete(machine)

    assert machine.compose_display_sentence() == "cat pizza eats"


def test_secondary_display_reorders_to_subject_verb_object() -> None:
    machine = SelectionStateMachine()
    _complete(machine)

    assert machine.compose_display_sentence(use_secondary=True) == "고양이 먹어요 피자"


def test_display_marks_missing_words() -> None:
    machine = SelectionStateMachine()
    assert machine.compose_display_sentence() == f"{MISSING_WORD} {MISSING_WORD} {MISSING_WORD}"

    machine.select_word(CAT)
    machine.select_word(PIZZA)
    assert machine.compose_display_sentence() == "cat pizza ???"
    assert machine.compose_display_sentence(use_secondary=True) == "고양이 ??? 피자"


# ---------------------------------------------------------------
# Candidates from the word supply
# ---------------------------------------------------------------

def test_candidates_come_from_current_slot() -> None:
    machine = SelectionStateMachine(word_supply=WordCatalog.default(), candidates_per_step=4)
    rng = random.Random(7)

    subjects = machine.candidates(rng=rng)
    assert len(subjects) == 4
    assert all(w.slot_kind == SlotKind.SUBJECT for w in subjects)

    machine.select_word(subjects[0])
    objects = machine.candidates(count=10, rng=rng)
    assert len(objects) == 6
    assert all(w.slot_kind == SlotKind.OBJECT for w in objects)


def test_candidates_empty_without_supply_or_when_complete() -> None:
    machine = SelectionStateMachine()
    assert machine.candidates() == []

    machine = SelectionStateMachine(word_supply=WordCatalog.default())
    _complete(machine)
    assert machine.candidates() == []
