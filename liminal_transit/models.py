"""Core domain models.

Every engine stage operates on these types. Pydantic validates bounded
fields at every boundary, so a restored session that violates a range
invariant is rejected instead of silently clamped.

A NarrativeSession is the aggregate root: world, cast, arc, consequences
and history, plus the RNG accumulator that makes the next draw
reproducible.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PLAYER_ID = "player"

SESSION_FORMAT = "liminal-transit/session"
SESSION_VERSION = 1

ChoiceType = Literal["binary", "multiple", "gesture", "timed", "conditional"]
EmotionalTone = Literal["positive", "negative", "neutral", "complex"]
Difficulty = Literal["easy", "medium", "hard"]
GestureKind = Literal["swipe", "long_press", "double_click"]
Stance = Literal["authority", "outsider", "neutral"]

Phase = Literal["setup", "inciting", "rising", "climax", "falling", "resolution"]
Pacing = Literal["slow", "medium", "fast"]

Horizon = Literal["short_term", "long_term"]
Severity = Literal["minor", "moderate", "major"]

ConditionSubject = Literal[
    "character_mood",
    "world_state",
    "relationship",
    "unrevealed_consequences",
    "previous_choice",
    "turns_elapsed",
]
ConditionOperator = Literal["equals", "greater", "less", "contains"]

EndReason = Literal[
    "interaction_cap",
    "tension_peak",
    "consequence_cap",
    "completion",
    "ending_beat",
]


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

class World(BaseModel):
    """The setting. Created once from the seed, mutated only by resolution."""

    seed: str
    player_role: str
    destination: str
    genre: str
    continuity: int = Field(default=3, ge=0, le=6)
    foreshadow: int = Field(default=0, ge=0)
    tension: float = Field(ge=0.0, le=1.0)
    mystery: float = Field(ge=0.0, le=1.0)
    location: str
    time_of_day: str
    atmosphere: str


# ---------------------------------------------------------------------------
# Characters
# ---------------------------------------------------------------------------

class Mood(BaseModel):
    dominant: str
    intensity: float = Field(ge=0.0, le=100.0)
    influences: list[str] = Field(default_factory=list)


class Memory(BaseModel):
    """Something a character remembers. `turn` is the logical timestamp."""

    id: str
    content: str
    emotional_weight: float = Field(ge=-1.0, le=1.0)
    importance: float = Field(ge=0.0, le=100.0)
    turn: int = Field(ge=0)
    related_character_ids: list[str] = Field(default_factory=list)


class Relationship(BaseModel):
    strength: float = Field(ge=-1.0, le=1.0)
    trust: float = Field(ge=0.0, le=100.0)
    affection: float = Field(ge=0.0, le=100.0)


class Character(BaseModel):
    """A persistent cast member.

    `relationships` is keyed by the other character's id; the reserved key
    PLAYER_ID holds the character's standing with the player.
    """

    id: str
    name: str
    stance: Stance
    archetypes: list[str] = Field(default_factory=list)
    background: str = ""
    traits: dict[str, float] = Field(default_factory=dict)
    mood: Mood
    memories: list[Memory] = Field(default_factory=list)
    relationships: dict[str, Relationship] = Field(default_factory=dict)
    active: bool = True


# ---------------------------------------------------------------------------
# Conditions, choices, consequences
# ---------------------------------------------------------------------------

class Condition(BaseModel):
    """A single predicate over session state.

    Used both for choice availability and for consequence reveal rules.
    """

    subject: ConditionSubject
    target: str = ""
    operator: ConditionOperator
    value: float | str


class CharacterReaction(BaseModel):
    immediate: str
    mood_change: float = Field(ge=-1.0, le=1.0)
    relationship_impact: float = Field(ge=-1.0, le=1.0)


class Choice(BaseModel):
    """One option in the catalog. Generated fresh each turn."""

    id: str
    text: str
    type: ChoiceType
    difficulty: Difficulty
    emotional_tone: EmotionalTone
    category: str = "action"
    preview: str = ""
    tension_change: float = 0.0
    reactions: dict[str, CharacterReaction] = Field(default_factory=dict)
    conditions: list[Condition] = Field(default_factory=list)
    repeatable: bool = False
    gesture: GestureKind | None = None
    time_limit: int | None = None


class ChoicePreview(BaseModel):
    choice_id: str
    likely_outcome: str
    reactions: dict[str, str] = Field(default_factory=dict)
    tension_change: float
    impact: Literal["low", "medium", "high"]


class Consequence(BaseModel):
    """A recorded effect of a past choice.

    Immutable once created apart from `revealed`, which flips exactly once
    when every reveal condition holds. World deltas apply at reveal time.
    """

    id: str
    choice_id: str
    description: str
    horizon: Horizon
    severity: Severity
    affected_character_ids: list[str] = Field(default_factory=list)
    world_deltas: dict[str, float] = Field(default_factory=dict)
    created_turn: int = Field(ge=0)
    revealed: bool = False
    reveal_conditions: list[Condition] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Arc and session
# ---------------------------------------------------------------------------

class StoryArc(BaseModel):
    phase: Phase = "setup"
    tension: float = Field(ge=0.0, le=100.0)
    themes: list[str] = Field(default_factory=list)
    central_conflict: str
    completion_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    pacing: Pacing = "medium"


class HistoryEntry(BaseModel):
    turn: int = Field(ge=1)
    choice_id: str
    narrative_text: str
    enhanced: bool = False
    recorded_at: datetime | None = None


class NarrativeSession(BaseModel):
    """Aggregate root for one playthrough."""

    format: Literal["liminal-transit/session"] = SESSION_FORMAT
    version: int = SESSION_VERSION
    session_id: str
    seed: str
    rng_state: int = Field(ge=0, le=0xFFFFFFFF)
    opening_text: str
    world: World
    characters: list[Character]
    story_arc: StoryArc
    consequences: list[Consequence] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)
    completion_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    ended: bool = False
    end_reason: EndReason | None = None

    @property
    def choices_made(self) -> int:
        return len(self.history)

    def character(self, character_id: str) -> Character | None:
        for char in self.characters:
            if char.id == character_id:
                return char
        return None


class TurnResult(BaseModel):
    """What resolve_choice hands back: the new session value and the beat."""

    session: NarrativeSession
    narrative_text: str
    ended: bool
    enhanced: bool = False
