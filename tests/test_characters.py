"""Tests for character moods, relationships and memories."""

from liminal_transit.characters import (
    MEMORY_CAP,
    adjust_peer_relationships,
    apply_reaction,
    development_score,
    find_by_stance,
    memory_importance,
    mood_label,
    player_relationship,
    player_standing,
    REACTION_PHRASES,
    reaction_phrase,
    record_memory,
    strongest_ally,
)
from liminal_transit.models import PLAYER_ID, Character, CharacterReaction, Mood, Relationship
from liminal_transit.rng import SeededRNG


def _char(char_id="guide", stance="neutral", **traits) -> Character:
    return Character(
        id=char_id,
        name=char_id.title(),
        stance=stance,
        traits={"trustworthiness": 50.0, "curiosity": 50.0, **traits},
        mood=Mood(dominant="calm", intensity=50),
        relationships={PLAYER_ID: Relationship(strength=0, trust=50, affection=50)},
    )


# ── mood_label ──────────────────────────────────────────────


def test_mood_label_buckets():
    assert mood_label("calm", 0.3) == "pleased"
    assert mood_label("calm", -0.4) == "irritated"
    assert mood_label("calm", 0.15) == "intrigued"
    assert mood_label("calm", -0.15) == "intrigued"
    assert mood_label("calm", 0.05) == "calm"


def test_mood_label_boundaries_are_exclusive():
    assert mood_label("calm", 0.2) == "intrigued"
    assert mood_label("calm", 0.1) == "calm"


# ── apply_reaction ──────────────────────────────────────────


def test_apply_reaction_updates_mood_and_standing():
    char = _char()
    apply_reaction(char, "resist", CharacterReaction(immediate="frowns", mood_change=-0.4, relationship_impact=-0.3))
    assert char.mood.dominant == "irritated"
    assert char.mood.intensity == 66
    assert char.mood.influences[-1] == "resist"

    rel = char.relationships[PLAYER_ID]
    assert rel.strength == -0.3
    assert rel.trust == 44
    assert rel.affection == 44
    assert char.traits["trustworthiness"] == 48.5


def test_apply_reaction_small_change_keeps_mood():
    char = _char()
    apply_reaction(char, "wait", CharacterReaction(immediate="shrugs", mood_change=0.05, relationship_impact=0))
    assert char.mood.dominant == "calm"
    assert char.mood.influences == []


def test_apply_reaction_clamps():
    char = _char()
    for _ in range(10):
        apply_reaction(char, "ally", CharacterReaction(immediate="nods", mood_change=1.0, relationship_impact=1.0))
    rel = char.relationships[PLAYER_ID]
    assert rel.strength == 1.0
    assert rel.trust == 100
    assert char.mood.intensity == 100


def test_influences_capped_at_five():
    char = _char()
    for i in range(8):
        apply_reaction(char, f"c{i}", CharacterReaction(immediate="x", mood_change=0.3, relationship_impact=0))
    assert char.mood.influences == ["c3", "c4", "c5", "c6", "c7"]


def test_player_relationship_created_on_demand():
    char = _char()
    del char.relationships[PLAYER_ID]
    rel = player_relationship(char)
    assert rel.trust == 50
    assert char.relationships[PLAYER_ID] is rel


# ── peers ───────────────────────────────────────────────────


def _pair():
    a, b = _char("a"), _char("b")
    a.relationships["b"] = Relationship(strength=0.2, trust=50, affection=50)
    b.relationships["a"] = Relationship(strength=0.2, trust=50, affection=50)
    return a, b


def test_same_reaction_draws_peers_closer():
    a, b = _pair()
    same = CharacterReaction(immediate="x", mood_change=0.3, relationship_impact=0)
    adjust_peer_relationships([a, b], {"a": same, "b": same})
    assert a.relationships["b"].strength == 0.25
    assert b.relationships["a"].strength == 0.25


def test_opposite_reactions_drift_apart():
    a, b = _pair()
    adjust_peer_relationships([a, b], {
        "a": CharacterReaction(immediate="x", mood_change=0.3, relationship_impact=0),
        "b": CharacterReaction(immediate="y", mood_change=-0.3, relationship_impact=0),
    })
    assert a.relationships["b"].strength == 0.15


def test_bystanders_unaffected():
    a, b = _pair()
    adjust_peer_relationships([a, b], {"a": CharacterReaction(immediate="x", mood_change=0.3, relationship_impact=0)})
    assert a.relationships["b"].strength == 0.2


# ── memories ────────────────────────────────────────────────


def test_memory_importance_formula():
    assert memory_importance(20, 0) == 50
    assert memory_importance(20, -0.5) == 65
    assert memory_importance(200, 1.0) == 100


def test_record_memory_fields():
    char = _char()
    memory = record_memory(char, turn=3, content="saw it", weight=0.25, arc_tension=30, related=["b"])
    assert memory.id == "mem-3-guide"
    assert memory.turn == 3
    assert memory.related_character_ids == ["b"]
    assert char.memories == [memory]


def test_memory_cap_evicts_least_important_oldest_first():
    char = _char()
    record_memory(char, turn=1, content="vivid", weight=1.0, arc_tension=20, related=[])
    for turn in range(2, 2 + MEMORY_CAP):
        record_memory(char, turn=turn, content="dull", weight=0.0, arc_tension=20, related=[])

    assert len(char.memories) == MEMORY_CAP
    turns = [m.turn for m in char.memories]
    assert 1 in turns
    assert 2 not in turns


# ── queries ─────────────────────────────────────────────────


def test_find_by_stance_skips_inactive():
    first = _char("first", stance="authority")
    first.active = False
    second = _char("second", stance="authority")
    assert find_by_stance([first, second], "authority") is second
    assert find_by_stance([first, second], "outsider") is None


def test_strongest_ally():
    a, b = _char("a"), _char("b")
    b.relationships[PLAYER_ID].strength = 0.4
    assert strongest_ally([a, b]) is b
    assert strongest_ally([]) is None


def test_strongest_ally_does_not_insert_player_relationship():
    a, b = _char("a"), _char("b")
    del a.relationships[PLAYER_ID]
    b.relationships[PLAYER_ID].strength = 0.2
    assert strongest_ally([a, b]) is b
    assert PLAYER_ID not in a.relationships


def test_player_standing_defaults_without_writing():
    char = _char()
    del char.relationships[PLAYER_ID]
    assert player_standing(char).trust == 50
    assert PLAYER_ID not in char.relationships


def test_reaction_phrase_keyed_to_trustworthiness():
    rng = SeededRNG(1)
    assert reaction_phrase(_char(trustworthiness=80), rng) in REACTION_PHRASES["high_trust"]
    assert reaction_phrase(_char(trustworthiness=20), rng) in REACTION_PHRASES["low_trust"]
    assert reaction_phrase(_char(trustworthiness=55), rng) in REACTION_PHRASES["neutral"]


def test_development_score():
    assert development_score([]) == 0.0
    char = _char()
    assert development_score([char]) == 15
    for turn in range(1, 4):
        record_memory(char, turn=turn, content="x", weight=0, arc_tension=0, related=[])
    assert development_score([char]) == 45
