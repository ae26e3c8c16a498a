"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel

from liminal_transit.models import Choice, NarrativeSession


class CreateSession(BaseModel):
    seed: str | None = None


class SessionView(BaseModel):
    session: NarrativeSession
    choices: list[Choice]
    resolving: bool = False


class TurnView(BaseModel):
    narrative_text: str
    ended: bool
    enhanced: bool
    session: NarrativeSession
    choices: list[Choice]
