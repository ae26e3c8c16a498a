"""Tests for condition evaluation over session state."""

from liminal_transit.conditions import all_hold, compare, evaluate
from liminal_transit.models import PLAYER_ID, Condition, Consequence, HistoryEntry


def _cond(subject, operator, value, target=""):
    return Condition(subject=subject, target=target, operator=operator, value=value)


# ── compare ─────────────────────────────────────────────────


def test_compare_equals():
    assert compare("pleased", "equals", "pleased")
    assert compare(3, "equals", 3.0)
    assert not compare("pleased", "equals", "irritated")


def test_compare_greater_less():
    assert compare(0.8, "greater", 0.7)
    assert not compare(0.7, "greater", 0.7)
    assert compare(1, "less", 2)


def test_compare_non_numeric_is_false():
    assert not compare("calm", "greater", 1)


def test_compare_contains():
    assert compare("Hero (Pending)", "contains", "Hero")
    assert compare(["comply", "wait"], "contains", "wait")
    assert not compare(["comply"], "contains", "resist")


# ── evaluate ────────────────────────────────────────────────


def test_character_mood(session):
    lead = session.characters[0]
    lead.mood.dominant = "irritated"
    assert evaluate(_cond("character_mood", "equals", "irritated", lead.id), session)
    assert not evaluate(_cond("character_mood", "equals", "pleased", lead.id), session)


def test_unknown_character_is_false(session):
    assert not evaluate(_cond("character_mood", "equals", "calm", "ghost"), session)
    assert not evaluate(_cond("relationship", "less", 100, "ghost"), session)


def test_world_state(session):
    session.world.tension = 0.9
    assert evaluate(_cond("world_state", "greater", 0.7, "tension"), session)
    assert not evaluate(_cond("world_state", "greater", 0, "weather"), session)


def test_relationship_reads_player_strength(session):
    char = session.characters[1]
    char.relationships[PLAYER_ID].strength = 0.35
    assert evaluate(_cond("relationship", "greater", 0.3, char.id), session)


def test_unrevealed_consequences(session):
    assert not evaluate(_cond("unrevealed_consequences", "greater", 0), session)
    session.consequences.append(Consequence(
        id="csq-1", choice_id="resist", description="x",
        horizon="short_term", severity="minor", created_turn=1,
    ))
    assert evaluate(_cond("unrevealed_consequences", "greater", 0), session)


def test_previous_choice(session):
    session.history.append(HistoryEntry(turn=1, choice_id="resist", narrative_text="x"))
    assert evaluate(_cond("previous_choice", "contains", "resist"), session)
    assert not evaluate(_cond("previous_choice", "contains", "comply"), session)


def test_turns_elapsed_relative_to_creation(session):
    for turn in range(1, 4):
        session.history.append(HistoryEntry(turn=turn, choice_id="wait", narrative_text="x"))
    cond = _cond("turns_elapsed", "greater", 1)
    assert evaluate(cond, session, since_turn=1)
    assert not evaluate(cond, session, since_turn=2)


def test_all_hold(session):
    session.world.tension = 0.9
    ok = _cond("world_state", "greater", 0.5, "tension")
    bad = _cond("world_state", "less", 0.5, "tension")
    assert all_hold([], session)
    assert all_hold([ok], session)
    assert not all_hold([ok, bad], session)
