"""FastAPI API endpoints under /api.

Endpoint groups: health, and sessions (create, inspect, choices, preview,
resolve, export/import). Sessions live in the in-memory store on
app.state; the engine that resolves them is app.state.engine.
"""

from fastapi import APIRouter

from .health import router as health_router
from .sessions import router as sessions_router

router = APIRouter()
router.include_router(health_router)
router.include_router(sessions_router)
