"""Liminal Transit: a seeded, deterministic interactive-narrative engine.

A session is generated from a seed string (world, cast, story arc) and
advanced one choice at a time:

    session = create_session("test-seed")
    choices = list_choices(session)
    result = await NarrativeEngine().resolve_choice(session, choices[0].id)

Given the same seed and the same choices, every run produces the same
world, cast, arc and narrative text. Sessions are pydantic models; the
RNG state travels with them, so a saved session resumes bit-for-bit.

Modules:
  rng            seed hashing and the Mulberry32 stream
  worldgen       world, cast and arc generation
  characters     moods, memories, relationships
  conditions     predicates over session state
  catalog        which choices are available, and previews
  narrative      offline beat composition and the terminal marker
  resolver       apply_choice, the state transition
  arc            phase state machine, completion, termination
  engine         NarrativeEngine facade with async enhancement
  enhancer       optional text-enhancement collaborator (httpx)
  serialization  session save/restore
  config         environment configuration
  app, routes    FastAPI surface
"""

# Re-export the public surface so `from liminal_transit import ...` is enough.

from .catalog import InvalidChoiceError, preview_choice  # noqa: F401
from .engine import (  # noqa: F401
    AlreadyResolvingError,
    NarrativeEngine,
    create_session,
    is_ended,
    list_choices,
)
from .enhancer import EnhancerError, HttpEnhancer, NoopEnhancer, TextEnhancer  # noqa: F401
from .models import (  # noqa: F401
    Character,
    Choice,
    Consequence,
    NarrativeSession,
    StoryArc,
    TurnResult,
    World,
)
from .resolver import apply_choice  # noqa: F401
from .rng import EmptyCollectionError, SeededRNG, hash_seed  # noqa: F401
from .serialization import SerializationError, deserialize_session, serialize_session  # noqa: F401
