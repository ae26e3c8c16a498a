"""Offline narrative composition.

Binary choices use the sensory beat: a small chance of an ending beat,
otherwise "<beat> The air tastes of <sense>. <hook>". Every other choice
type has its own template pool and names the reacting character together
with the mood the reaction is about to produce.

Composers are registered per ChoiceType; the registry is checked against
the ChoiceType literal at import so a new type cannot be added without a
composer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import get_args

from pydantic import BaseModel, ConfigDict

from liminal_transit.characters import mood_label, reaction_phrase
from liminal_transit.models import Character, Choice, ChoiceType, NarrativeSession
from liminal_transit.rng import SeededRNG, chance, pick

RESTART_MARKER = "(Restart?)"
ENDING_CHANCE = 0.06

SENSES = ["neon", "dust", "sea-wet air", "library quiet", "violet dusk"]

COMPLY_BEATS = [
    "A guard wavers; the clipboard dims.",
    "A side door clicks open, unmarked.",
    "Someone nods as if they expected you.",
]

RESIST_BEATS = [
    "The line of passengers rustles like paper.",
    "A siren purrs but never rises.",
    "Footsteps multiply in the hall.",
]

HOOKS = [
    "Follow the whispering lawyer?",
    "Trust the teen with the notebook?",
    "Take the unlit stair?",
    "Ask the driver what he knows?",
]

ENDERS = [
    "The room exhales. Your story opens elsewhere.",
    "The road bends and forgets you were chased.",
]

CATEGORY_LINES = {
    "diplomatic": [
        "Your words find their mark. The tension eases slightly.",
        "The diplomatic approach opens new possibilities.",
        "Through careful negotiation, a path forward emerges.",
    ],
    "exploration": [
        "The doors sigh open onto a platform you do not remember.",
        "You step down into a corridor that smells of rain and ink.",
        "The next stop arrives sooner than the timetable allows.",
    ],
    "investigate": [
        "Swift questions cut through the uncertainty.",
        "Your question lands, and the silence that follows is an answer.",
        "Somewhere a file is opened that was meant to stay closed.",
    ],
    "observe": [
        "Patience reveals hidden details.",
        "From the shadows, you gather crucial information.",
        "Careful observation uncovers new opportunities.",
    ],
}

GENERIC_LINES = ["The situation evolves in an unexpected direction."]

GESTURE_LINES = [
    "Communication happens beyond words.",
    "Nobody else seems to notice, which is the point.",
    "For a moment the two of you share the same secret.",
]

TIMED_LINES = [
    "The urgency of the moment demands quick thinking.",
    "Your rapid decision carries the weight of instinct over deliberation.",
    "There is no time to rehearse what you say next.",
]

CONDITIONAL_LINES = [
    "The complex circumstances allow for this unique approach.",
    "Your understanding of the situation opens new possibilities.",
    "What you have learned so far finally counts for something.",
]

GESTURE_NAMES = {"swipe": "swipe", "long_press": "lingering touch", "double_click": "double tap"}


class Beat(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    ending: bool = False


Composer = Callable[[Choice, NarrativeSession, SeededRNG], Beat]


def reacting_character(choice: Choice, session: NarrativeSession) -> Character | None:
    """First cast member, in cast order, with a reaction to this choice."""
    for char in session.characters:
        if char.id in choice.reactions:
            return char
    return None


def _character_sentence(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> str:
    char = reacting_character(choice, session)
    if char is None:
        return "What happens next?"
    mood = mood_label(char.mood.dominant, choice.reactions[char.id].mood_change)
    return f"{char.name}, {mood}, {reaction_phrase(char, rng)}."


def offline_beat(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    if chance(rng, ENDING_CHANCE):
        return Beat(text=pick(rng, ENDERS), ending=True)
    sense = pick(rng, SENSES)
    beat = pick(rng, COMPLY_BEATS if choice.emotional_tone == "positive" else RESIST_BEATS)
    hook = pick(rng, HOOKS)
    return Beat(text=f"{beat} The air tastes of {sense}. {hook}")


def _compose_multiple(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    line = pick(rng, CATEGORY_LINES.get(choice.category, GENERIC_LINES))
    return Beat(text=f"{line} {_character_sentence(choice, session, rng)}")


def _compose_gesture(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    gesture = GESTURE_NAMES.get(choice.gesture or "", "gesture")
    line = pick(rng, GESTURE_LINES)
    return Beat(
        text=f"The subtle {gesture} creates an unspoken understanding. {line} "
        f"{_character_sentence(choice, session, rng)}",
    )


def _compose_timed(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    line = pick(rng, TIMED_LINES)
    return Beat(text=f"{line} {_character_sentence(choice, session, rng)}")


def _compose_conditional(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    line = pick(rng, CONDITIONAL_LINES)
    return Beat(text=f"{line} {_character_sentence(choice, session, rng)}")


COMPOSERS: dict[ChoiceType, Composer] = {
    "binary": offline_beat,
    "multiple": _compose_multiple,
    "gesture": _compose_gesture,
    "timed": _compose_timed,
    "conditional": _compose_conditional,
}

if set(COMPOSERS) != set(get_args(ChoiceType)):
    raise RuntimeError(f"missing composers: {sorted(set(get_args(ChoiceType)) - set(COMPOSERS))}")


def compose_beat(choice: Choice, session: NarrativeSession, rng: SeededRNG) -> Beat:
    return COMPOSERS[choice.type](choice, session, rng)


# ---------------------------------------------------------------------------
# Terminal marker
# ---------------------------------------------------------------------------

def closing_line(rng: SeededRNG) -> str:
    return pick(rng, ENDERS)


def with_marker(text: str) -> str:
    return f"{text} {RESTART_MARKER}"


def split_marker(text: str) -> tuple[str, bool]:
    """Strip a trailing terminal marker. Returns (body, had_marker)."""
    stripped = text.rstrip()
    if stripped.endswith(RESTART_MARKER):
        return stripped[: -len(RESTART_MARKER)].rstrip(), True
    return text, False


def reveal_sentence(description: str) -> str:
    return f"An earlier choice surfaces: {description}."
