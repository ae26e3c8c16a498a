"""World and cast generation from a seed.

One SeededRNG is derived from the seed and consumed in a fixed order:

  1. world labels: tension, role, destination, genre, location, time, mystery
  2. cast templates: one authority, one outsider, then the rest without replacement
  3. per character: eight trait draws, then mood intensity
  4. story arc: tension, theme count, themes, central conflict
  5. opening line

Cast size comes from the seed hash (2 + hash % 4), not from the stream, so
the same seed always yields the same number of characters.

Pairwise relationships are seeded from a compatibility score derived from
trait differences.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from pydantic import BaseModel, ConfigDict

from liminal_transit.models import (
    PLAYER_ID,
    Character,
    Mood,
    NarrativeSession,
    Relationship,
    Stance,
    StoryArc,
    World,
)
from liminal_transit.rng import SeededRNG, draw_range, hash_seed, pick

logger = logging.getLogger(__name__)

PLAYER_ROLES = [
    "Hero (Pending)",
    "Suspicious Stranger",
    "Background Character, L3",
    "Plot Device — Handle With Care",
]

DESTINATIONS = [
    "Checkpoint City",
    "Undesignated Territory 7",
    "Harbor of Revisions",
    "The Stray Road",
]

GENRES = [
    "liminal realism",
    "administrative horror",
    "transit mystery",
    "bureaucratic surrealism",
]

LOCATIONS = [
    "the night bus",
    "the ferry crossing",
    "the departure lounge",
    "the train between stations",
    "the subway platform",
    "the hospital waiting room",
    "the elevator between floors",
    "the parking garage stairwell",
]

TIMES_OF_DAY = ["dawn", "morning", "midday", "afternoon", "dusk", "night"]

THEMES = ["journey", "transformation", "connection", "mystery", "choice", "authority", "identity"]

CENTRAL_CONFLICTS = [
    "Finding one's true destination",
    "Reconciling past and future",
    "Choosing between safety and growth",
    "Understanding hidden connections",
]

OPENINGS = [
    "{place} halts at {time}. {name} demands your ticket. Hand it over?",
    "{place} falls silent at {time}. {name} asks to see your papers. Show them?",
    "At {time}, {place} stops without warning. {name} holds out a gloved hand for your pass. Comply?",
]

LIMINAL_SEED_THEMES = [
    "airport_departure_lounge",
    "train_between_stations",
    "bus_late_night",
    "hospital_waiting_room",
    "elevator_between_floors",
    "ferry_crossing",
    "subway_platform",
    "parking_garage_stairwell",
]

# (base, spread): each trait is base + rng() * spread, clamped to [0, 100]
TRAIT_RANGES: dict[str, tuple[float, float]] = {
    "openness": (30, 40),
    "conscientiousness": (40, 30),
    "extraversion": (20, 60),
    "agreeableness": (35, 40),
    "neuroticism": (15, 35),
    "trustworthiness": (40, 40),
    "curiosity": (50, 40),
    "bravery": (30, 50),
}

PLAYER_RELATIONSHIP = Relationship(strength=0.0, trust=50.0, affection=50.0)


class CharacterTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    stance: Stance
    initial_mood: str
    archetypes: tuple[str, ...]
    background: str


CHARACTER_TEMPLATES: tuple[CharacterTemplate, ...] = (
    CharacterTemplate(
        key="transit_official", name="Transit Official", stance="authority", initial_mood="stern",
        archetypes=("guardian", "bureaucrat"), background="Enforces rules nobody remembers writing",
    ),
    CharacterTemplate(
        key="conductor", name="The Conductor", stance="authority", initial_mood="watchful",
        archetypes=("gatekeeper",), background="Knows every stop, admits to none of them",
    ),
    CharacterTemplate(
        key="mysterious_passenger", name="Fellow Passenger", stance="outsider", initial_mood="enigmatic",
        archetypes=("trickster", "witness"), background="Boarded before the route existed",
    ),
    CharacterTemplate(
        key="skeptic", name="The Skeptic", stance="outsider", initial_mood="suspicious",
        archetypes=("rebel", "detective"), background="Questions everything and trusts few",
    ),
    CharacterTemplate(
        key="guide", name="The Guide", stance="neutral", initial_mood="contemplative",
        archetypes=("mentor", "mystic"), background="A keeper of stories and secrets",
    ),
    CharacterTemplate(
        key="innocent", name="The Innocent", stance="neutral", initial_mood="curious",
        archetypes=("innocent", "seeker"), background="New to this world's complexities",
    ),
)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def describe_atmosphere(tension: float) -> str:
    """Atmosphere label for a world tension in [0, 1]."""
    if tension > 0.7:
        return "thick with tension"
    if tension > 0.4:
        return "cautiously expectant"
    return "quiet and liminal"


def cast_size(seed: str) -> int:
    return 2 + hash_seed(seed) % 4


def generate_seed() -> str:
    """Fresh non-deterministic seed: <liminal theme>_<base36 time>_<random>."""
    theme = random.choice(LIMINAL_SEED_THEMES)
    stamp = _base36(int(time.time() * 1000))
    return f"{theme}_{stamp}_{uuid.uuid4().hex[:6]}"


def _base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while number:
        number, rem = divmod(number, 36)
        out = digits[rem] + out
    return out or "0"


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

def generate_world(seed: str, rng: SeededRNG) -> World:
    tension = draw_range(rng, 0.4, 0.3)
    world = World(
        seed=seed,
        player_role=pick(rng, PLAYER_ROLES),
        destination=pick(rng, DESTINATIONS),
        genre=pick(rng, GENRES),
        location=pick(rng, LOCATIONS),
        time_of_day=pick(rng, TIMES_OF_DAY),
        tension=tension,
        mystery=draw_range(rng, 0.5, 0.4),
        atmosphere=describe_atmosphere(tension),
    )
    return world


# ---------------------------------------------------------------------------
# Cast
# ---------------------------------------------------------------------------

def select_templates(seed: str, rng: SeededRNG) -> list[CharacterTemplate]:
    """One authority, one outsider, then the rest from the remaining pool."""
    count = cast_size(seed)
    authority = pick(rng, [t for t in CHARACTER_TEMPLATES if t.stance == "authority"])
    outsider = pick(rng, [t for t in CHARACTER_TEMPLATES if t.stance == "outsider"])
    chosen = [authority, outsider]
    remaining = [t for t in CHARACTER_TEMPLATES if t not in chosen]
    while len(chosen) < count:
        template = pick(rng, remaining)
        remaining.remove(template)
        chosen.append(template)
    return chosen


def generate_traits(rng: SeededRNG) -> dict[str, float]:
    return {
        name: clamp(draw_range(rng, base, spread), 0.0, 100.0)
        for name, (base, spread) in TRAIT_RANGES.items()
    }


def new_character(template: CharacterTemplate, rng: SeededRNG) -> Character:
    traits = generate_traits(rng)
    return Character(
        id=template.key,
        name=template.name,
        stance=template.stance,
        archetypes=list(template.archetypes),
        background=template.background,
        traits=traits,
        mood=Mood(
            dominant=template.initial_mood,
            intensity=draw_range(rng, 50, 30),
            influences=["story_beginning"],
        ),
        relationships={PLAYER_ID: PLAYER_RELATIONSHIP.model_copy()},
    )


def compatibility(a: dict[str, float], b: dict[str, float]) -> float:
    """0–100; identical agreeableness and extraversion score 100."""
    diff = abs(a["agreeableness"] - b["agreeableness"]) + abs(a["extraversion"] - b["extraversion"])
    return max(0.0, 100.0 - diff)


def relationship_from_compatibility(score: float) -> Relationship:
    return Relationship(
        strength=round(score / 200, 3),
        trust=round(40 + score * 0.3, 2),
        affection=round(30 + score * 0.4, 2),
    )


def establish_relationships(characters: list[Character]) -> None:
    """Seed a symmetric relationship for every character pair, in place."""
    for i, first in enumerate(characters):
        for second in characters[i + 1:]:
            score = compatibility(first.traits, second.traits)
            first.relationships[second.id] = relationship_from_compatibility(score)
            second.relationships[first.id] = relationship_from_compatibility(score)


def generate_cast(seed: str, rng: SeededRNG) -> list[Character]:
    characters = [new_character(t, rng) for t in select_templates(seed, rng)]
    establish_relationships(characters)
    return characters


# ---------------------------------------------------------------------------
# Arc and session
# ---------------------------------------------------------------------------

def generate_arc(rng: SeededRNG) -> StoryArc:
    tension = draw_range(rng, 15, 20)
    count = 2 + int(rng() * 3)
    pool = list(THEMES)
    themes = []
    for _ in range(count):
        theme = pick(rng, pool)
        pool.remove(theme)
        themes.append(theme)
    return StoryArc(
        tension=tension,
        themes=themes,
        central_conflict=pick(rng, CENTRAL_CONFLICTS),
    )


def opening_line(world: World, lead: Character, rng: SeededRNG) -> str:
    text = pick(rng, OPENINGS).format(place=world.location, time=world.time_of_day, name=lead.name)
    return text[0].upper() + text[1:]


def new_session(seed: str, session_id: str | None = None) -> NarrativeSession:
    """Build the initial session for a seed.

    Everything except `session_id` is a pure function of the seed.
    """
    rng = SeededRNG.from_seed(seed)
    world = generate_world(seed, rng)
    characters = generate_cast(seed, rng)
    arc = generate_arc(rng)
    opening = opening_line(world, characters[0], rng)

    logger.debug(
        "world generated seed=%r role=%r cast=%d rng_state=%#010x",
        seed, world.player_role, len(characters), rng.state,
    )

    return NarrativeSession(
        session_id=session_id or uuid.uuid4().hex,
        seed=seed,
        rng_state=rng.state,
        opening_text=opening,
        world=world,
        characters=characters,
        story_arc=arc,
    )
