"""Choice resolution: the single state transition of the engine.

apply_choice(session, choice_id) → Resolution is a reducer: it deep-copies
the session, applies the choice to the copy, and never touches its input.
Steps, in order, all drawing from the session's own RNG stream:

  1. narrative beat     narrative.compose_beat (binary → sensory beat, may end the story)
  2. characters         moods, player relationships, peer drift, one memory each
  3. world              tone/type deltas, continuity, foreshadow, exploration, atmosphere
  4. consequences       first matching rule appends at most one Consequence
  5. history            one HistoryEntry per resolved choice
  then reveal pass, arc update, termination check, closing line + marker.

The RNG accumulator is written back to the copy so the next turn (or a
restored save) continues the same stream.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from liminal_transit.arc import termination_reason, update_arc
from liminal_transit.catalog import find_choice
from liminal_transit.characters import (
    adjust_peer_relationships,
    apply_reaction,
    deepen_curiosity,
    find_by_stance,
    record_memory,
)
from liminal_transit.conditions import all_hold
from liminal_transit.models import (
    Choice,
    Condition,
    Consequence,
    EmotionalTone,
    HistoryEntry,
    NarrativeSession,
    World,
)
from liminal_transit.narrative import (
    closing_line,
    compose_beat,
    reveal_sentence,
    with_marker,
)
from liminal_transit.rng import SeededRNG, chance, pick
from liminal_transit.worldgen import LOCATIONS, clamp, describe_atmosphere

logger = logging.getLogger(__name__)

FORESHADOW_CHANCE = 0.25

# tone → (tension delta, mystery delta)
TONE_DELTAS: dict[EmotionalTone, tuple[float, float]] = {
    "positive": (-0.10, -0.05),
    "negative": (0.20, 0.10),
    "neutral": (0.0, 0.05),
    "complex": (0.05, 0.10),
}

TYPE_TENSION_BIAS = {
    "binary": 0.0,
    "multiple": 0.0,
    "gesture": 0.05,
    "timed": 0.10,
    "conditional": 0.0,
}


class Resolution(BaseModel):
    """Outcome of one apply_choice call. The input session is never part of it."""

    session: NarrativeSession
    narrative_text: str
    ended: bool
    consequence: Consequence | None = None
    revealed: list[Consequence] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# World
# ---------------------------------------------------------------------------

def _role_coheres(role: str, tone: EmotionalTone) -> bool | None:
    """Whether a tone fits the player's role. None for neutral tones."""
    if tone == "neutral":
        return None
    if "Hero" in role:
        return tone == "positive"
    return tone in ("negative", "complex")


def apply_world_deltas(world: World, deltas: dict[str, float]) -> None:
    for key, delta in deltas.items():
        if key in ("tension", "mystery"):
            setattr(world, key, round(clamp(getattr(world, key) + delta, 0.0, 1.0), 3))
        elif key == "continuity":
            world.continuity = int(clamp(world.continuity + int(delta), 0, 6))
        elif key == "foreshadow":
            world.foreshadow = max(0, world.foreshadow + int(delta))
        else:
            logger.debug("ignoring unknown world delta %r", key)
    world.atmosphere = describe_atmosphere(world.tension)


def update_world(world: World, choice: Choice, rng: SeededRNG) -> None:
    tension_delta, mystery_delta = TONE_DELTAS[choice.emotional_tone]
    tension_delta += TYPE_TENSION_BIAS[choice.type]

    coherent = _role_coheres(world.player_role, choice.emotional_tone)
    continuity_delta = 0 if coherent is None else (1 if coherent else -1)

    apply_world_deltas(world, {
        "tension": tension_delta,
        "mystery": mystery_delta,
        "continuity": continuity_delta,
    })
    if chance(rng, FORESHADOW_CHANCE):
        world.foreshadow += 1
    if choice.category == "exploration":
        world.location = pick(rng, [loc for loc in LOCATIONS if loc != world.location])


# ---------------------------------------------------------------------------
# Characters
# ---------------------------------------------------------------------------

def update_characters(session: NarrativeSession, choice: Choice, turn: int, beat: str) -> None:
    reacting = [c.id for c in session.characters if c.id in choice.reactions]
    for char in session.characters:
        reaction = choice.reactions.get(char.id)
        if reaction is not None:
            apply_reaction(char, choice.id, reaction)
            weight = reaction.mood_change
            content = f"{choice.text}: {reaction.immediate}. {beat}"
        else:
            weight = 0.0
            content = f"Witnessed the choice {choice.text!r}. {beat}"
        if choice.emotional_tone == "complex":
            deepen_curiosity(char)
        record_memory(
            char,
            turn=turn,
            content=content[:240],
            weight=weight,
            arc_tension=session.story_arc.tension,
            related=[cid for cid in reacting if cid != char.id],
        )
    adjust_peer_relationships(session.characters, choice.reactions)


# ---------------------------------------------------------------------------
# Consequence rules
# ---------------------------------------------------------------------------

class RuleContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    turn: int
    first_choice: bool


ConsequenceRule = Callable[[NarrativeSession, Choice, RuleContext], Consequence | None]


def _authority_ids(session: NarrativeSession) -> list[str]:
    return [c.id for c in session.characters if c.stance == "authority"]


def first_choice_rule(session: NarrativeSession, choice: Choice, ctx: RuleContext) -> Consequence | None:
    if not ctx.first_choice or choice.type != "binary":
        return None
    authorities = _authority_ids(session)
    if choice.emotional_tone == "positive":
        return Consequence(
            id=f"csq-{ctx.turn}",
            choice_id=choice.id,
            description="Your compliance has earned temporary trust",
            horizon="short_term",
            severity="minor",
            affected_character_ids=authorities,
            world_deltas={"tension": -0.1},
            created_turn=ctx.turn,
            reveal_conditions=[Condition(subject="turns_elapsed", operator="greater", value=2)],
        )
    lead = find_by_stance(session.characters, "authority")
    reveal = [Condition(subject="turns_elapsed", operator="greater", value=1)]
    if lead is not None:
        reveal.append(Condition(subject="character_mood", target=lead.id, operator="equals", value="irritated"))
    return Consequence(
        id=f"csq-{ctx.turn}",
        choice_id=choice.id,
        description="Your refusal to comply has marked you as suspicious",
        horizon="short_term",
        severity="moderate",
        affected_character_ids=authorities,
        world_deltas={"tension": 0.15, "mystery": 0.05},
        created_turn=ctx.turn,
        reveal_conditions=reveal,
    )


def gesture_rule(session: NarrativeSession, choice: Choice, ctx: RuleContext) -> Consequence | None:
    if choice.type != "gesture":
        return None
    return Consequence(
        id=f"csq-{ctx.turn}",
        choice_id=choice.id,
        description="A silent pact now binds you to someone who has not said why",
        horizon="long_term",
        severity="moderate",
        affected_character_ids=[cid for cid in choice.reactions if session.character(cid)],
        world_deltas={"mystery": 0.1},
        created_turn=ctx.turn,
        reveal_conditions=[Condition(subject="turns_elapsed", operator="greater", value=1)],
    )


def confrontation_rule(session: NarrativeSession, choice: Choice, ctx: RuleContext) -> Consequence | None:
    if choice.category != "reckoning":
        return None
    pending = [c for c in session.consequences if not c.revealed]
    if not pending:
        return None
    return Consequence(
        id=f"csq-{ctx.turn}",
        choice_id=choice.id,
        description=f"You faced what followed from {pending[0].choice_id!r}, and it faced you back",
        horizon="long_term",
        severity="major",
        affected_character_ids=list(pending[0].affected_character_ids),
        world_deltas={"tension": -0.15},
        created_turn=ctx.turn,
        reveal_conditions=[Condition(subject="turns_elapsed", operator="greater", value=0)],
    )


CONSEQUENCE_RULES: list[ConsequenceRule] = [
    first_choice_rule,
    gesture_rule,
    confrontation_rule,
]


def derive_consequence(session: NarrativeSession, choice: Choice, ctx: RuleContext) -> Consequence | None:
    for rule in CONSEQUENCE_RULES:
        consequence = rule(session, choice, ctx)
        if consequence is not None:
            return consequence
    return None


def _reveal(session: NarrativeSession, index: int) -> Consequence:
    revealed = session.consequences[index].model_copy(update={"revealed": True})
    session.consequences[index] = revealed
    apply_world_deltas(session.world, revealed.world_deltas)
    logger.debug("consequence revealed id=%s", revealed.id)
    return revealed


def reveal_oldest(session: NarrativeSession) -> Consequence | None:
    """Reveal the oldest pending consequence regardless of its conditions."""
    for index, consequence in enumerate(session.consequences):
        if not consequence.revealed:
            return _reveal(session, index)
    return None


def reveal_consequences(session: NarrativeSession, *, exclude: str | None = None) -> list[Consequence]:
    """Reveal every pending consequence whose conditions hold."""
    revealed = []
    for index, consequence in enumerate(session.consequences):
        if consequence.revealed or consequence.id == exclude:
            continue
        if all_hold(consequence.reveal_conditions, session, since_turn=consequence.created_turn):
            revealed.append(_reveal(session, index))
    return revealed


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def apply_choice(
    session: NarrativeSession,
    choice_id: str,
    *,
    now: datetime | None = None,
) -> Resolution:
    """Resolve one choice against a copy of the session.

    Raises InvalidChoiceError if choice_id is not in the current catalog.
    """
    choice = find_choice(session, choice_id)
    draft = session.model_copy(deep=True)
    rng = SeededRNG(draft.rng_state)
    ctx = RuleContext(turn=draft.choices_made + 1, first_choice=draft.choices_made == 0)

    beat = compose_beat(choice, draft, rng)
    update_characters(draft, choice, ctx.turn, beat.text)
    update_world(draft.world, choice, rng)

    revealed: list[Consequence] = []
    consequence = derive_consequence(draft, choice, ctx)
    if choice.category == "reckoning":
        # a confrontation drags the oldest pending consequence into the open
        forced = reveal_oldest(draft)
        if forced is not None:
            revealed.append(forced)
    if consequence is not None:
        draft.consequences.append(consequence)
        logger.debug("consequence created id=%s choice=%s", consequence.id, choice.id)

    entry = HistoryEntry(turn=ctx.turn, choice_id=choice.id, narrative_text=beat.text, recorded_at=now)
    draft.history.append(entry)

    revealed.extend(reveal_consequences(draft, exclude=consequence.id if consequence else None))
    parts = [beat.text] + [reveal_sentence(c.description) for c in revealed]

    update_arc(draft, choice)

    reason = "ending_beat" if beat.ending else termination_reason(draft)
    if reason is not None:
        draft.ended = True
        draft.end_reason = reason
        if not beat.ending:
            parts.append(closing_line(rng))
        logger.debug("story ended reason=%s turn=%d", reason, ctx.turn)

    text = " ".join(parts)
    if draft.ended:
        text = with_marker(text)
    entry.narrative_text = text
    draft.rng_state = rng.state

    return Resolution(
        session=draft,
        narrative_text=text,
        ended=draft.ended,
        consequence=consequence,
        revealed=revealed,
    )
