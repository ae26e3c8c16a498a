"""Session endpoints: create, inspect, list/preview/resolve choices, export/import."""

from fastapi import APIRouter, HTTPException, Request

from liminal_transit.catalog import InvalidChoiceError
from liminal_transit.engine import AlreadyResolvingError, NarrativeEngine
from liminal_transit.models import NarrativeSession
from liminal_transit.serialization import SerializationError, deserialize_session, session_to_dict

from .models import CreateSession, SessionView, TurnView

router = APIRouter()


def _engine(request: Request) -> NarrativeEngine:
    return request.app.state.engine


def _sessions(request: Request) -> dict[str, NarrativeSession]:
    return request.app.state.sessions


def _get_session(request: Request, session_id: str) -> NarrativeSession:
    session = _sessions(request).get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _invalid_choice(e: InvalidChoiceError) -> HTTPException:
    return HTTPException(400, {
        "message": str(e),
        "choices": [c.model_dump(mode="json") for c in e.choices],
    })


@router.post("/sessions", status_code=201, response_model=SessionView)
async def create_session(request: Request, body: CreateSession | None = None):
    """Start a new session. Omit the seed for a fresh random one."""
    engine = _engine(request)
    session = engine.create_session(body.seed if body else None)
    _sessions(request)[session.session_id] = session
    return SessionView(session=session, choices=engine.list_choices(session))


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(request: Request, session_id: str):
    """Get a session, its current choices, and whether a turn is in flight."""
    engine = _engine(request)
    session = _get_session(request, session_id)
    return SessionView(
        session=session,
        choices=engine.list_choices(session),
        resolving=engine.is_resolving(session_id),
    )


@router.get("/sessions/{session_id}/choices")
async def list_choices(request: Request, session_id: str):
    """List the choices available now. Empty once the story has ended."""
    session = _get_session(request, session_id)
    return _engine(request).list_choices(session)


@router.get("/sessions/{session_id}/choices/{choice_id}/preview")
async def preview_choice(request: Request, session_id: str, choice_id: str):
    """Describe a choice's likely outcome without resolving it."""
    session = _get_session(request, session_id)
    try:
        return _engine(request).preview_choice(session, choice_id)
    except InvalidChoiceError as e:
        raise _invalid_choice(e)


@router.post("/sessions/{session_id}/choices/{choice_id}", response_model=TurnView)
async def resolve_choice(request: Request, session_id: str, choice_id: str):
    """Resolve a choice and advance the session."""
    engine = _engine(request)
    session = _get_session(request, session_id)
    try:
        result = await engine.resolve_choice(session, choice_id)
    except InvalidChoiceError as e:
        raise _invalid_choice(e)
    except AlreadyResolvingError as e:
        raise HTTPException(409, str(e))

    _sessions(request)[session_id] = result.session
    return TurnView(
        narrative_text=result.narrative_text,
        ended=result.ended,
        enhanced=result.enhanced,
        session=result.session,
        choices=engine.list_choices(result.session),
    )


@router.get("/sessions/{session_id}/export")
async def export_session(request: Request, session_id: str):
    """Export a session as a restorable JSON document."""
    return session_to_dict(_get_session(request, session_id))


@router.post("/sessions/import", status_code=201, response_model=SessionView)
async def import_session(request: Request, body: dict):
    """Restore an exported session. It continues exactly where it was saved."""
    try:
        session = deserialize_session(body)
    except SerializationError as e:
        raise HTTPException(422, str(e))
    engine = _engine(request)
    if engine.is_resolving(session.session_id):
        raise HTTPException(409, f"Session {session.session_id} is resolving a choice")
    _sessions(request)[session.session_id] = session
    return SessionView(session=session, choices=engine.list_choices(session))
