"""Choice catalog: which choices the player may take right now.

Stage is chosen by the number of choices already made:

  early  (< 2)     two binary choices, comply / resist
  mid    (2 to 4)  defuse (tension > 0.7) or move_on, investigate (mystery > 0.6), wait
  late   (>= 5)    gesture / timed / conditional choices whose conditions hold, plus wait;
                   falls back to the mid stage when nothing unlocks

Character reactions are derived from each character's stance so they fit
whatever cast the seed produced. Non-repeatable choices already taken are
not offered again. The catalog is a pure function of the session, so the
"last issued" catalog is always reproducible from the session value.
"""

from __future__ import annotations

import logging

from liminal_transit.characters import find_by_stance, strongest_ally
from liminal_transit.conditions import all_hold
from liminal_transit.models import (
    Character,
    CharacterReaction,
    Choice,
    ChoicePreview,
    Condition,
    NarrativeSession,
    Stance,
)

logger = logging.getLogger(__name__)

EARLY_STAGE_LIMIT = 2
MID_STAGE_LIMIT = 5

DEFUSE_TENSION = 0.7
INVESTIGATE_MYSTERY = 0.6
ALLY_RELATIONSHIP = 0.1
CONFIDE_RELATIONSHIP = 0.3

# stance → (immediate, mood_change, relationship_impact)
BINARY_REACTIONS: dict[str, dict[Stance, tuple[str, float, float]]] = {
    "comply": {
        "authority": ("nods approvingly", 0.3, 0.2),
        "outsider": ("observes quietly", 0.0, -0.1),
        "neutral": ("relaxes a little", 0.15, 0.05),
    },
    "resist": {
        "authority": ("frowns disapprovingly", -0.4, -0.3),
        "outsider": ("leans forward with interest", 0.2, 0.2),
        "neutral": ("glances away, uneasy", -0.15, -0.05),
    },
}

LIKELY_OUTCOMES = {
    "positive": "The situation eases, for now.",
    "negative": "Your resistance will be remembered.",
    "neutral": "Events unfold without you.",
    "complex": "Something hidden shifts beneath the surface.",
}


class InvalidChoiceError(LookupError):
    """Raised when a choice id is not in the current catalog.

    `choices` holds the re-issued catalog so the caller can present it again.
    """

    def __init__(self, choice_id: str, choices: list[Choice]) -> None:
        super().__init__(f"Choice {choice_id!r} is not available")
        self.choice_id = choice_id
        self.choices = choices


def _reaction(immediate: str, mood_change: float, impact: float) -> CharacterReaction:
    return CharacterReaction(immediate=immediate, mood_change=mood_change, relationship_impact=impact)


def _taken(session: NarrativeSession) -> set[str]:
    return {entry.choice_id for entry in session.history}


# ---------------------------------------------------------------------------
# Early stage
# ---------------------------------------------------------------------------

def binary_choices(session: NarrativeSession) -> list[Choice]:
    choices = []
    for choice_id, text, difficulty, tone, tension in (
        ("comply", "Yes", "easy", "positive", -3.0),
        ("resist", "No", "medium", "negative", 5.0),
    ):
        table = BINARY_REACTIONS[choice_id]
        reactions = {
            char.id: _reaction(*table[char.stance])
            for char in session.characters
            if char.active
        }
        choices.append(Choice(
            id=choice_id,
            text=text,
            type="binary",
            difficulty=difficulty,
            emotional_tone=tone,
            category="compliance" if choice_id == "comply" else "defiance",
            tension_change=tension,
            reactions=reactions,
        ))
    return choices


def fallback_choices() -> list[Choice]:
    """The safe two-choice catalog used when generation hits an inconsistency."""
    return [
        Choice(id="comply", text="Yes", type="binary", difficulty="easy",
               emotional_tone="positive", category="compliance", tension_change=2.0),
        Choice(id="resist", text="No", type="binary", difficulty="easy",
               emotional_tone="negative", category="defiance", tension_change=-1.0),
    ]


# ---------------------------------------------------------------------------
# Mid stage
# ---------------------------------------------------------------------------

def _wait_choice() -> Choice:
    return Choice(
        id="wait",
        text="Remain silent and observe",
        type="multiple",
        difficulty="easy",
        emotional_tone="neutral",
        category="observe",
        preview="Let events unfold naturally",
        tension_change=1.0,
        repeatable=True,
    )


def contextual_choices(session: NarrativeSession) -> list[Choice]:
    world = session.world
    authority = find_by_stance(session.characters, "authority")
    outsider = find_by_stance(session.characters, "outsider")
    taken = _taken(session)
    choices: list[Choice] = []

    if world.tension > DEFUSE_TENSION and "defuse" not in taken:
        reactions = {}
        if authority:
            reactions[authority.id] = _reaction("lowers their voice", 0.25, 0.2)
        if outsider:
            reactions[outsider.id] = _reaction("looks faintly disappointed", -0.05, 0.0)
        choices.append(Choice(
            id="defuse",
            text="Try to defuse the tension",
            type="multiple",
            difficulty="hard",
            emotional_tone="positive",
            category="diplomatic",
            preview="Attempt to calm the situation with words",
            tension_change=-6.0,
            reactions=reactions,
            conditions=[Condition(subject="world_state", target="tension",
                                  operator="greater", value=DEFUSE_TENSION)],
        ))
    else:
        reactions = {}
        if authority:
            reactions[authority.id] = _reaction("marks something on a clipboard", -0.15, -0.05)
        choices.append(Choice(
            id="move_on",
            text="Step off at the next stop",
            type="multiple",
            difficulty="medium",
            emotional_tone="neutral",
            category="exploration",
            preview="Leave this place behind and see where the route goes",
            tension_change=2.0,
            reactions=reactions,
            repeatable=True,
        ))

    if world.mystery > INVESTIGATE_MYSTERY and "investigate" not in taken:
        reactions = {}
        if outsider:
            reactions[outsider.id] = _reaction("exchanges a meaningful glance", 0.15, 0.3)
        choices.append(Choice(
            id="investigate",
            text="Ask about the real purpose of this journey",
            type="multiple",
            difficulty="medium",
            emotional_tone="complex",
            category="investigate",
            preview="Seek answers to the growing questions",
            tension_change=3.0,
            reactions=reactions,
            conditions=[Condition(subject="world_state", target="mystery",
                                  operator="greater", value=INVESTIGATE_MYSTERY)],
        ))

    choices.append(_wait_choice())
    return choices


# ---------------------------------------------------------------------------
# Late stage
# ---------------------------------------------------------------------------

def _ally_choice(authority: Character, outsider: Character) -> Choice:
    return Choice(
        id="ally",
        text=f"Signal to {outsider.name}",
        type="gesture",
        gesture="long_press",
        difficulty="hard",
        emotional_tone="complex",
        category="alliance",
        preview="Form an unspoken alliance against authority",
        tension_change=8.0,
        reactions={
            outsider.id: _reaction("responds with a subtle nod", 0.3, 0.5),
            authority.id: _reaction("notices the exchange suspiciously", -0.2, -0.3),
        },
        conditions=[
            Condition(subject="character_mood", target=authority.id, operator="equals", value="irritated"),
            Condition(subject="relationship", target=outsider.id, operator="greater", value=ALLY_RELATIONSHIP),
        ],
    )


def _confront_choice(session: NarrativeSession) -> Choice:
    pending = [c for c in session.consequences if not c.revealed]
    affected = pending[0].affected_character_ids if pending else []
    reactions = {
        char_id: _reaction("meets your gaze at last", 0.15, 0.1)
        for char_id in affected
        if session.character(char_id) is not None
    }
    return Choice(
        id="confront_past",
        text="Address the consequences of your previous actions",
        type="timed",
        time_limit=10,
        difficulty="hard",
        emotional_tone="complex",
        category="reckoning",
        preview="Face the weight of your choices",
        tension_change=10.0,
        reactions=reactions,
        conditions=[Condition(subject="unrevealed_consequences", operator="greater", value=0)],
    )


def _invoke_role_choice(session: NarrativeSession, authority: Character | None) -> Choice:
    if "Hero" in session.world.player_role:
        condition = Condition(subject="world_state", target="player_role", operator="contains", value="Hero")
    else:
        condition = Condition(subject="world_state", target="continuity", operator="greater", value=4)
    reactions = {}
    if authority:
        reactions[authority.id] = _reaction("checks a list twice", 0.25, 0.15)
    return Choice(
        id="invoke_role",
        text=f"Insist you are the {session.world.player_role}",
        type="conditional",
        difficulty="medium",
        emotional_tone="positive",
        category="identity",
        preview="Lean on the role the journey assigned you",
        tension_change=-2.0,
        reactions=reactions,
        conditions=[condition],
    )


def _confide_choice(ally: Character) -> Choice:
    return Choice(
        id=f"confide_{ally.id}",
        text=f"Ask {ally.name} to vouch for you",
        type="conditional",
        difficulty="medium",
        emotional_tone="positive",
        category="trust",
        preview="Spend the trust you have earned",
        tension_change=-4.0,
        reactions={ally.id: _reaction("steps forward on your behalf", 0.25, 0.2)},
        conditions=[Condition(subject="relationship", target=ally.id,
                              operator="greater", value=CONFIDE_RELATIONSHIP)],
    )


def conditional_choices(session: NarrativeSession) -> list[Choice]:
    """Late-stage candidates whose availability conditions currently hold."""
    authority = find_by_stance(session.characters, "authority")
    outsider = find_by_stance(session.characters, "outsider")
    ally = strongest_ally(session.characters)

    candidates: list[Choice] = []
    if authority and outsider:
        candidates.append(_ally_choice(authority, outsider))
    candidates.append(_confront_choice(session))
    candidates.append(_invoke_role_choice(session, authority))
    if ally:
        candidates.append(_confide_choice(ally))

    taken = _taken(session)
    return [
        c for c in candidates
        if (c.repeatable or c.id not in taken) and all_hold(c.conditions, session)
    ]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _generate(session: NarrativeSession) -> list[Choice]:
    count = session.choices_made
    if count < EARLY_STAGE_LIMIT:
        return binary_choices(session)
    if count < MID_STAGE_LIMIT:
        return contextual_choices(session)
    unlocked = conditional_choices(session)
    if not unlocked:
        logger.debug("no late-stage choices unlocked; using contextual catalog")
        return contextual_choices(session)
    return unlocked + [_wait_choice()]


def list_choices(session: NarrativeSession) -> list[Choice]:
    """Return the choices available now. Read-only; empty only once the story has ended."""
    if session.ended:
        return []
    try:
        choices = _generate(session)
    except (LookupError, ValueError) as e:
        logger.warning("catalog generation failed (%s); using fallback catalog", e)
        return fallback_choices()
    if not choices:
        return fallback_choices()
    return choices


def find_choice(session: NarrativeSession, choice_id: str) -> Choice:
    """Look a choice up in the current catalog or raise InvalidChoiceError."""
    choices = list_choices(session)
    for choice in choices:
        if choice.id == choice_id:
            return choice
    raise InvalidChoiceError(choice_id, choices)


def _impact(choice: Choice) -> str:
    magnitude = abs(choice.tension_change)
    if magnitude >= 8:
        return "high"
    if magnitude >= 3:
        return "medium"
    return "low"


def preview_choice(session: NarrativeSession, choice_id: str) -> ChoicePreview:
    """Describe what a choice is likely to do, without resolving it."""
    choice = find_choice(session, choice_id)
    reactions = {}
    for char_id, reaction in choice.reactions.items():
        char = session.character(char_id)
        if char is not None:
            reactions[char_id] = f"{char.name} {reaction.immediate}"
    return ChoicePreview(
        choice_id=choice.id,
        likely_outcome=choice.preview or LIKELY_OUTCOMES[choice.emotional_tone],
        reactions=reactions,
        tension_change=choice.tension_change,
        impact=_impact(choice),
    )
