from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from goaltracker.api.auth import router as auth_router
from goaltracker.api.goals import router as goals_router
from goaltracker.api.social import router as social_router
from goaltracker.api.suggestions import router as suggestions_router
from goaltracker.core.config import Settings, settings as default_settings
from goaltracker.core.log_config import configure_logging
from goaltracker.services.app_state import AppState


def create_app(settings: Settings | None = None, remote_transport: httpx.BaseTransport | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)
    state = AppState(settings, remote_transport=remote_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state.startup()
        yield
        state.shutdown()

    app = FastAPI(title="Goal Tracker", lifespan=lifespan)
    app.state.goaltracker = state

    # Allow CORS for local frontend
    origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(goals_router)
    app.include_router(social_router)
    app.include_router(suggestions_router)

    @app.get("/")
    def root():
        return {"message": "Goal tracker backend is running", "mode": state.mode.value}

    return app


app = create_app()
