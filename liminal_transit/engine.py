"""Engine facade: the public surface over generation, catalog and resolution.

NarrativeEngine holds the injected enhancer and the per-session bookkeeping
needed for async resolution: which sessions are mid-resolution, and the
in-flight enhancement task for each so it can be cancelled. It holds no
session state; sessions are values passed in and returned.

Resolution runs the deterministic reducer first. Only then is the finished
beat offered to the enhancer, so world, cast and arc never depend on the
enhancement call succeeding.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from liminal_transit import catalog
from liminal_transit.enhancer import DEFAULT_TIMEOUT, NoopEnhancer, TextEnhancer, run_enhancement
from liminal_transit.models import Choice, ChoicePreview, NarrativeSession, TurnResult
from liminal_transit.narrative import split_marker, with_marker
from liminal_transit.resolver import Resolution, apply_choice
from liminal_transit.worldgen import generate_seed, new_session

logger = logging.getLogger(__name__)


class AlreadyResolvingError(RuntimeError):
    """Raised when a session already has a resolution in flight."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id!r} is already resolving a choice")
        self.session_id = session_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NarrativeEngine:
    """Creates sessions and resolves choices against them.

    Args:
        enhancer:        Optional text-enhancement collaborator. Defaults to NoopEnhancer.
        enhance_timeout: Seconds to wait for the enhancer before using the offline text.
        clock:           Source of history timestamps.
    """

    def __init__(
        self,
        enhancer: TextEnhancer | None = None,
        enhance_timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.enhancer: TextEnhancer = enhancer or NoopEnhancer()
        self.enhance_timeout = enhance_timeout
        self._clock = clock
        self._resolving: set[str] = set()
        self._enhancements: dict[str, asyncio.Future[str]] = {}

    # -- read-only operations ------------------------------------------------

    def create_session(self, seed: str | None = None) -> NarrativeSession:
        return create_session(seed)

    def list_choices(self, session: NarrativeSession) -> list[Choice]:
        return catalog.list_choices(session)

    def preview_choice(self, session: NarrativeSession, choice_id: str) -> ChoicePreview:
        return catalog.preview_choice(session, choice_id)

    def is_ended(self, session: NarrativeSession) -> bool:
        return is_ended(session)

    def is_resolving(self, session_id: str) -> bool:
        return session_id in self._resolving

    # -- resolution ----------------------------------------------------------

    async def resolve_choice(self, session: NarrativeSession, choice_id: str) -> TurnResult:
        """Resolve one choice and return the new session value.

        Raises InvalidChoiceError for a choice outside the current catalog and
        AlreadyResolvingError while another resolution for the same session
        id is in flight. The input session is never modified.
        """
        session_id = session.session_id
        if session_id in self._resolving:
            raise AlreadyResolvingError(session_id)

        self._resolving.add(session_id)
        try:
            resolution = apply_choice(session, choice_id, now=self._clock())
            text, enhanced = await self._enhance(session_id, resolution)
        finally:
            self._resolving.discard(session_id)
            self._enhancements.pop(session_id, None)

        result = resolution.session
        if enhanced:
            result.history[-1] = result.history[-1].model_copy(
                update={"narrative_text": text, "enhanced": True}
            )
        logger.info(
            "resolved session=%s choice=%s turn=%d ended=%s enhanced=%s",
            session_id, choice_id, result.choices_made, result.ended, enhanced,
        )
        return TurnResult(session=result, narrative_text=text, ended=result.ended, enhanced=enhanced)

    async def _enhance(self, session_id: str, resolution: Resolution) -> tuple[str, bool]:
        if isinstance(self.enhancer, NoopEnhancer):
            return resolution.narrative_text, False

        body, terminal = split_marker(resolution.narrative_text)
        world = resolution.session.world.model_copy(deep=True)
        task = asyncio.ensure_future(self.enhancer.enhance(body, world))
        self._enhancements[session_id] = task

        text, enhanced = await run_enhancement(task, body, self.enhance_timeout)
        if not enhanced:
            return resolution.narrative_text, False
        if terminal:
            text = with_marker(text)
        return text, True

    def cancel_enhancement(self, session_id: str) -> bool:
        """Cancel the in-flight enhancement for a session.

        The turn still completes with the offline text. Returns False when
        there is nothing to cancel.
        """
        task = self._enhancements.get(session_id)
        if task is None or task.done():
            return False
        logger.debug("cancelling enhancement session=%s", session_id)
        task.cancel()
        return True


# ---------------------------------------------------------------------------
# Module-level operations
# ---------------------------------------------------------------------------

def create_session(seed: str | None = None) -> NarrativeSession:
    """Start a new session. Without a seed a fresh, non-reproducible seed is generated."""
    if seed is None:
        seed = generate_seed()
    session = new_session(seed)
    logger.info("session created id=%s seed=%r", session.session_id, seed)
    return session


def list_choices(session: NarrativeSession) -> list[Choice]:
    return catalog.list_choices(session)


def is_ended(session: NarrativeSession) -> bool:
    return session.ended
