"""Story arc tracker: phase state machine, completion, termination.

Phases advance through

    setup → inciting → rising → climax → falling → resolution

to the furthest phase whose completion threshold is met (5/20/40/60/80 %).
The phase never moves backwards, even if completion dips.

Completion blends three signals:
  60%  interaction progress   choices made / EXPECTED_INTERACTIONS
  20%  consequence progress   consequences / CONSEQUENCE_CAP
  20%  character development  characters.development_score()

Termination is separate from phase. The story ends when any of these hold:
  interaction_cap   choices made >= INTERACTION_CAP
  tension_peak      world tension reaches 1.0 or arc tension reaches 100
  consequence_cap   consequences >= CONSEQUENCE_CAP
  completion        session completion rate reaches 100
(`ending_beat`, the offline ending beat, is decided by the resolver.)
"""

from __future__ import annotations

import logging

from liminal_transit.characters import development_score
from liminal_transit.models import Choice, EndReason, NarrativeSession, Pacing, Phase
from liminal_transit.worldgen import clamp

logger = logging.getLogger(__name__)

PHASES: tuple[Phase, ...] = ("setup", "inciting", "rising", "climax", "falling", "resolution")

PHASE_THRESHOLDS: dict[Phase, float] = {
    "setup": 0,
    "inciting": 5,
    "rising": 20,
    "climax": 40,
    "falling": 60,
    "resolution": 80,
}

EXPECTED_INTERACTIONS = 8
INTERACTION_CAP = 8
# Play alone creates at most three consequences (first choice, ally,
# confront_past); the cap ends restored sessions that carry more and
# scales the consequence share of completion.
CONSEQUENCE_CAP = 5


def completion_percentage(session: NarrativeSession) -> float:
    interaction = min(1.0, session.choices_made / EXPECTED_INTERACTIONS) * 100
    consequence = min(1.0, len(session.consequences) / CONSEQUENCE_CAP) * 100
    development = development_score(session.characters)
    blended = 0.6 * interaction + 0.2 * consequence + 0.2 * development
    return round(clamp(blended, 0.0, 100.0), 2)


def phase_for(completion: float) -> Phase:
    """The furthest phase whose threshold is met."""
    reached: Phase = "setup"
    for phase in PHASES:
        if completion >= PHASE_THRESHOLDS[phase]:
            reached = phase
    return reached


def advance_phase(current: Phase, completion: float) -> Phase:
    candidate = phase_for(completion)
    if PHASES.index(candidate) > PHASES.index(current):
        return candidate
    return current


def pacing_for(tension: float) -> Pacing:
    if tension > 70:
        return "fast"
    if tension < 30:
        return "slow"
    return "medium"


def basic_completion(interactions: int) -> float:
    """Interaction curve: half credit by 5 choices, full credit by 20."""
    low, high = 5, 20
    if interactions <= low:
        return interactions / low * 50
    return min(50 + (interactions - low) / (high - low) * 50, 100.0)


def completion_rate(session: NarrativeSession) -> float:
    """Session-level completion: 40% interactions, 40% arc, 20% development."""
    rate = (
        basic_completion(session.choices_made) * 0.4
        + session.story_arc.completion_percentage * 0.4
        + development_score(session.characters) * 0.2
    )
    return round(clamp(rate, 0.0, 100.0), 2)


def update_arc(session: NarrativeSession, choice: Choice) -> None:
    """Advance tension, completion, phase and pacing in place.

    Call after the history entry and any new consequence have been appended.
    """
    arc = session.story_arc
    arc.tension = round(clamp(arc.tension + choice.tension_change, 0.0, 100.0), 2)
    arc.completion_percentage = completion_percentage(session)
    phase = advance_phase(arc.phase, arc.completion_percentage)
    if phase != arc.phase:
        logger.debug("arc phase %s → %s at %.2f%%", arc.phase, phase, arc.completion_percentage)
        arc.phase = phase
    arc.pacing = pacing_for(arc.tension)
    session.completion_rate = completion_rate(session)


def termination_reason(session: NarrativeSession) -> EndReason | None:
    if session.choices_made >= INTERACTION_CAP:
        return "interaction_cap"
    if session.world.tension >= 1.0 or session.story_arc.tension >= 100:
        return "tension_peak"
    if len(session.consequences) >= CONSEQUENCE_CAP:
        return "consequence_cap"
    if session.completion_rate >= 100:
        return "completion"
    return None
