"""Session save/restore.

A saved session is the JSON dump of NarrativeSession, including the RNG
accumulator, so a restored session continues the exact same stream of
draws. Payloads carry a format tag and version; anything else is rejected.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from liminal_transit.models import SESSION_FORMAT, SESSION_VERSION, NarrativeSession

logger = logging.getLogger(__name__)


class SerializationError(ValueError):
    """Raised when a session payload is corrupt, foreign, or from an unknown version."""


def serialize_session(session: NarrativeSession) -> str:
    return session.model_dump_json()


def session_to_dict(session: NarrativeSession) -> dict[str, Any]:
    """Plain JSON-compatible dict, for embedding in larger documents."""
    return session.model_dump(mode="json")


def deserialize_session(payload: str | bytes | dict[str, Any]) -> NarrativeSession:
    """Restore a session from a JSON string, bytes, or an already-decoded dict."""
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"Session payload is not valid JSON: {e}") from e
    else:
        data = payload

    if not isinstance(data, dict):
        raise SerializationError("Session payload must be a JSON object")
    if data.get("format") != SESSION_FORMAT:
        raise SerializationError(f"Unrecognised session format: {data.get('format')!r}")
    if data.get("version") != SESSION_VERSION:
        raise SerializationError(f"Unsupported session version: {data.get('version')!r}")

    try:
        session = NarrativeSession.model_validate(data)
    except ValidationError as e:
        raise SerializationError(f"Invalid session payload: {e.error_count()} error(s)") from e

    logger.debug("session restored id=%s turns=%d", session.session_id, session.choices_made)
    return session
