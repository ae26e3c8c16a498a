"""Handlebars prompt rendering for the text-enhancement collaborator."""

from collections.abc import Callable
from typing import Any

import pybars

from liminal_transit.models import World

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


ENHANCE_TEMPLATE = """\
You are the narrator of an interactive story in the genre of {{{world.genre}}}.
The player is travelling to {{{world.destination}}} as "{{{world.player_role}}}".
Scene: {{{world.location}}}, {{{world.time_of_day}}}. The atmosphere is {{{world.atmosphere}}}.
{{#if tense}}Tension is high; keep sentences short.{{/if}}
{{#if mysterious}}Leave at least one detail unexplained.{{/if}}

Rewrite the beat below in vivid prose. Keep every fact, keep any question
the beat ends with, and stay under {{max_words}} words.

Beat:
{{{base_text}}}

Return only the rewritten beat, nothing else."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_context(base_text: str, world: World, max_words: int = 90) -> dict[str, Any]:
    """Template variables for the enhancement prompt."""
    return {
        "base_text": base_text,
        "world": world.model_dump(),
        "tense": world.tension > 0.7,
        "mysterious": world.mystery > 0.6,
        "max_words": max_words,
    }


def enhancement_prompt(base_text: str, world: World, template: str = ENHANCE_TEMPLATE) -> str:
    return render_prompt(template, build_context(base_text, world))
