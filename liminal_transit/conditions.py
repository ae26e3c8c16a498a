"""Condition evaluation.

A Condition reads one value out of the session and compares it:

  character_mood           target=<character id>   → mood.dominant
  world_state              target=<World field>    → getattr(world, field)
  relationship             target=<character id>   → player relationship strength
  unrevealed_consequences  (no target)             → count of unrevealed consequences
  previous_choice          (no target)             → list of choice ids already made
  turns_elapsed            (no target)             → choices made since `since_turn`

Operators: equals, greater, less, contains. A missing target or a
comparison between incompatible types evaluates to False.
"""

from __future__ import annotations

import logging
from typing import Any

from liminal_transit.models import PLAYER_ID, Condition, NarrativeSession, World

logger = logging.getLogger(__name__)

_MISSING = object()


def _actual(condition: Condition, session: NarrativeSession, since_turn: int) -> Any:
    subject = condition.subject
    if subject == "character_mood":
        char = session.character(condition.target)
        return char.mood.dominant if char else _MISSING
    if subject == "world_state":
        if condition.target not in World.model_fields:
            return _MISSING
        return getattr(session.world, condition.target)
    if subject == "relationship":
        char = session.character(condition.target)
        if char is None:
            return _MISSING
        rel = char.relationships.get(PLAYER_ID)
        return rel.strength if rel else 0.0
    if subject == "unrevealed_consequences":
        return sum(1 for c in session.consequences if not c.revealed)
    if subject == "previous_choice":
        return [entry.choice_id for entry in session.history]
    if subject == "turns_elapsed":
        return session.choices_made - since_turn
    return _MISSING


def compare(actual: Any, operator: str, expected: float | str) -> bool:
    if operator == "equals":
        if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
            return float(actual) == float(expected)
        return actual == expected
    if operator in ("greater", "less"):
        try:
            a, e = float(actual), float(expected)
        except (TypeError, ValueError):
            return False
        return a > e if operator == "greater" else a < e
    if operator == "contains":
        if isinstance(actual, (list, tuple, set)):
            return expected in actual
        return str(expected) in str(actual)
    return False


def evaluate(condition: Condition, session: NarrativeSession, *, since_turn: int = 0) -> bool:
    actual = _actual(condition, session, since_turn)
    if actual is _MISSING:
        logger.debug("condition target missing subject=%s target=%r", condition.subject, condition.target)
        return False
    return compare(actual, condition.operator, condition.value)


def all_hold(conditions: list[Condition], session: NarrativeSession, *, since_turn: int = 0) -> bool:
    return all(evaluate(c, session, since_turn=since_turn) for c in conditions)
