"""Tests for offline beat composition and the terminal marker."""

from typing import get_args

import pytest
from pydantic import ValidationError

from liminal_transit.catalog import list_choices
from liminal_transit.characters import find_by_stance
from liminal_transit.models import PLAYER_ID, Choice, ChoiceType, HistoryEntry
from liminal_transit.narrative import (
    COMPOSERS,
    ENDERS,
    ENDING_CHANCE,
    HOOKS,
    RESTART_MARKER,
    SENSES,
    compose_beat,
    offline_beat,
    reacting_character,
    reveal_sentence,
    split_marker,
    with_marker,
)
from liminal_transit.rng import SeededRNG


def test_every_choice_type_has_a_composer():
    assert set(COMPOSERS) == set(get_args(ChoiceType))


def test_beats_are_frozen():
    choice = Choice(id="comply", text="Yes", type="binary", difficulty="easy", emotional_tone="positive")
    beat = offline_beat(choice, None, SeededRNG(3))
    with pytest.raises(ValidationError):
        beat.text = "rewritten"


# ── binary beats ────────────────────────────────────────────


def test_offline_beat_shape(session):
    comply = list_choices(session)[0]
    for i in range(50):
        beat = offline_beat(comply, session, SeededRNG(i))
        if beat.ending:
            assert beat.text in ENDERS
        else:
            assert "The air tastes of " in beat.text
            assert any(beat.text.endswith(hook) for hook in HOOKS)
            assert any(sense in beat.text for sense in SENSES)


def test_offline_beat_sometimes_ends():
    choice = Choice(id="comply", text="Yes", type="binary", difficulty="easy", emotional_tone="positive")
    endings = 0
    for i in range(400):
        if SeededRNG(i)() < ENDING_CHANCE:
            endings += 1
            assert offline_beat(choice, None, SeededRNG(i)).ending
    assert endings > 0


def test_offline_beat_deterministic(session):
    resist = list_choices(session)[1]
    a = offline_beat(resist, session, SeededRNG(7))
    b = offline_beat(resist, session, SeededRNG(7))
    assert a == b


# ── richer types ────────────────────────────────────────────


def _late_session(session):
    for turn in range(1, 6):
        session.history.append(HistoryEntry(turn=turn, choice_id="wait", narrative_text="x"))
    return session


def test_multiple_choice_names_reacting_character(session):
    for turn in range(1, 3):
        session.history.append(HistoryEntry(turn=turn, choice_id="wait", narrative_text="x"))
    session.world.tension = 0.9
    defuse = list_choices(session)[0]
    assert defuse.id == "defuse"
    speaker = reacting_character(defuse, session)
    beat = compose_beat(defuse, session, SeededRNG(3))
    assert speaker.name in beat.text
    assert "pleased" in beat.text
    assert not beat.ending


def test_choice_without_reactions_asks_what_next(session):
    for turn in range(1, 3):
        session.history.append(HistoryEntry(turn=turn, choice_id="wait", narrative_text="x"))
    wait = [c for c in list_choices(session) if c.id == "wait"][0]
    beat = compose_beat(wait, session, SeededRNG(3))
    assert beat.text.endswith("What happens next?")


def test_gesture_beat(session):
    _late_session(session)
    authority = find_by_stance(session.characters, "authority")
    authority.mood.dominant = "irritated"
    outsider = find_by_stance(session.characters, "outsider")
    outsider.relationships[PLAYER_ID].strength = 0.2
    ally = list_choices(session)[0]
    beat = compose_beat(ally, session, SeededRNG(5))
    assert beat.text.startswith("The subtle lingering touch creates an unspoken understanding.")
    assert authority.name in beat.text


# ── marker ──────────────────────────────────────────────────


def test_marker_round_trip():
    text = with_marker("The room exhales.")
    assert text == f"The room exhales. {RESTART_MARKER}"
    assert split_marker(text) == ("The room exhales.", True)


def test_split_marker_without_marker():
    assert split_marker("Take the unlit stair?") == ("Take the unlit stair?", False)


def test_reveal_sentence():
    assert reveal_sentence("It mattered") == "An earlier choice surfaces: It mattered."
