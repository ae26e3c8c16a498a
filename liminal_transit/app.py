from fastapi import FastAPI

from liminal_transit.config import build_enhancer, load_config
from liminal_transit.engine import NarrativeEngine
from liminal_transit.routes import router


def create_app(engine: NarrativeEngine | None = None) -> FastAPI:
    if engine is None:
        config = load_config()
        engine = NarrativeEngine(build_enhancer(config), enhance_timeout=config.enhancer_timeout)

    app = FastAPI(title="Liminal Transit")
    app.state.engine = engine
    # session_id → latest session value; lost on restart
    app.state.sessions = {}
    app.include_router(router, prefix="/api")
    return app
