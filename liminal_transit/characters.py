"""Character state logic: moods, memories, relationships, development.

Mood buckets (reaction mood_change Δ):
  Δ > +0.2    pleased
  Δ < -0.2    irritated
  |Δ| > 0.1   intrigued
  otherwise   unchanged

Intensity grows by 40·|Δ| and is capped at 100. The last five choice ids
that moved the mood are kept as influences.

Memories are capped at MEMORY_CAP. When the cap is exceeded the least
important memory goes first; among equally important memories the oldest
goes first. Chronological order of the survivors is preserved.

Player standing lives in relationships[PLAYER_ID]:
  strength  += impact        clamp [-1, 1]
  trust     += 20 · impact   clamp [0, 100]
  affection += 15 · Δ        clamp [0, 100]

All functions here mutate the Character they are handed; callers work on
a copy of the session (see resolver.apply_choice).
"""

from __future__ import annotations

from liminal_transit.models import (
    PLAYER_ID,
    Character,
    CharacterReaction,
    Memory,
    Relationship,
    Stance,
)
from liminal_transit.rng import SeededRNG, pick
from liminal_transit.worldgen import PLAYER_RELATIONSHIP, clamp

MEMORY_CAP = 10
INFLUENCE_CAP = 5
PEER_DRIFT = 0.05

REACTION_PHRASES = {
    "low_trust": ["watches suspiciously", "frowns with concern", "steps back cautiously"],
    "neutral": ["observes thoughtfully", "considers the implications", "remains attentive"],
    "high_trust": ["nods approvingly", "smiles with understanding", "expresses quiet approval"],
}


def mood_label(current: str, mood_change: float) -> str:
    if mood_change > 0.2:
        return "pleased"
    if mood_change < -0.2:
        return "irritated"
    if abs(mood_change) > 0.1:
        return "intrigued"
    return current


def player_relationship(character: Character) -> Relationship:
    """The character's standing with the player, created on first access."""
    rel = character.relationships.get(PLAYER_ID)
    if rel is None:
        rel = PLAYER_RELATIONSHIP.model_copy()
        character.relationships[PLAYER_ID] = rel
    return rel


def player_standing(character: Character) -> Relationship:
    """Read-only view of the player relationship; never inserts a default."""
    return character.relationships.get(PLAYER_ID, PLAYER_RELATIONSHIP)


def apply_reaction(character: Character, choice_id: str, reaction: CharacterReaction) -> None:
    """Shift mood, player relationship, and traits for one reaction."""
    delta = reaction.mood_change
    mood = character.mood
    mood.dominant = mood_label(mood.dominant, delta)
    mood.intensity = round(clamp(mood.intensity + 40 * abs(delta), 0.0, 100.0), 2)
    if abs(delta) > 0.1:
        mood.influences = (mood.influences + [choice_id])[-INFLUENCE_CAP:]

    impact = reaction.relationship_impact
    rel = player_relationship(character)
    rel.strength = round(clamp(rel.strength + impact, -1.0, 1.0), 3)
    rel.trust = round(clamp(rel.trust + 20 * impact, 0.0, 100.0), 2)
    rel.affection = round(clamp(rel.affection + 15 * delta, 0.0, 100.0), 2)

    if "trustworthiness" in character.traits:
        character.traits["trustworthiness"] = round(
            clamp(character.traits["trustworthiness"] + 5 * impact, 0.0, 100.0), 2
        )


def deepen_curiosity(character: Character) -> None:
    if "curiosity" in character.traits:
        character.traits["curiosity"] = clamp(character.traits["curiosity"] + 1, 0.0, 100.0)


def adjust_peer_relationships(characters: list[Character], reactions: dict[str, CharacterReaction]) -> None:
    """Characters reacting the same way grow closer; opposite reactions drift apart."""
    reacting = [c for c in characters if c.id in reactions and reactions[c.id].mood_change != 0]
    for i, first in enumerate(reacting):
        for second in reacting[i + 1:]:
            same_sign = (reactions[first.id].mood_change > 0) == (reactions[second.id].mood_change > 0)
            drift = PEER_DRIFT if same_sign else -PEER_DRIFT
            for a, b in ((first, second), (second, first)):
                rel = a.relationships.get(b.id)
                if rel is not None:
                    rel.strength = round(clamp(rel.strength + drift, -1.0, 1.0), 3)


# ---------------------------------------------------------------------------
# Memories
# ---------------------------------------------------------------------------

def memory_importance(arc_tension: float, weight: float) -> float:
    return round(clamp(40 + arc_tension / 2 + 30 * abs(weight), 0.0, 100.0), 2)


def remember(character: Character, memory: Memory, cap: int = MEMORY_CAP) -> None:
    """Append a memory, evicting the least important ones beyond the cap."""
    character.memories.append(memory)
    while len(character.memories) > cap:
        weakest = min(character.memories, key=lambda m: (m.importance, m.turn))
        character.memories.remove(weakest)


def record_memory(
    character: Character,
    *,
    turn: int,
    content: str,
    weight: float,
    arc_tension: float,
    related: list[str],
) -> Memory:
    memory = Memory(
        id=f"mem-{turn}-{character.id}",
        content=content,
        emotional_weight=round(clamp(weight, -1.0, 1.0), 3),
        importance=memory_importance(arc_tension, weight),
        turn=turn,
        related_character_ids=related,
    )
    remember(character, memory)
    return memory


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def find_by_stance(characters: list[Character], stance: Stance) -> Character | None:
    for char in characters:
        if char.stance == stance and char.active:
            return char
    return None


def strongest_ally(characters: list[Character]) -> Character | None:
    """The character with the highest player relationship strength (first wins ties)."""
    best: Character | None = None
    for char in characters:
        if not char.active:
            continue
        if best is None or player_standing(char).strength > player_standing(best).strength:
            best = char
    return best


def reaction_phrase(character: Character, rng: SeededRNG) -> str:
    """Pick a body-language phrase keyed to the character's trustworthiness."""
    trust = character.traits.get("trustworthiness", 50.0)
    if trust > 70:
        level = "high_trust"
    elif trust < 40:
        level = "low_trust"
    else:
        level = "neutral"
    return pick(rng, REACTION_PHRASES[level])


def development_score(characters: list[Character]) -> float:
    """Mean of memory and relationship depth across the cast, 0–100."""
    if not characters:
        return 0.0
    total = 0.0
    for char in characters:
        memory_score = min(100, len(char.memories) * 10)
        relationship_score = len(char.relationships) * 15
        total += memory_score + relationship_score
    return min(100.0, total / len(characters))
