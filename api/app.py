"""
api/app.py — FastAPI app instance + session middleware + expired-session cleanup
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import SESSION_CLEANUP_INTERVAL, SESSION_TTL, TICK_INTERVAL_SECONDS
from api.routes import router
from api.sample_catalog import build_sample_catalog
import api.session as session
from exam_prep.services.catalog import InMemoryCatalog
from exam_prep.services.recorder import InMemoryAttemptRecorder

SESSION_COOKIE = "exam_prep_session"

logger = logging.getLogger(__name__)


async def _cleanup_loop() -> None:
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL)
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"cleaned up {removed} expired sessions")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    # runs on the server loop so countdown tasks are cancelled from the same loop
    task = asyncio.create_task(_cleanup_loop())
    try:
        yield
    finally:
        task.cancel()


def create_app(
    catalog: InMemoryCatalog | None = None,
    recorder: InMemoryAttemptRecorder | None = None,
    tick_interval: float = TICK_INTERVAL_SECONDS,
) -> FastAPI:
    app = FastAPI(title="Exam Prep Mock Tests", docs_url=None, redoc_url=None, lifespan=_lifespan)

    app.state.catalog = catalog if catalog is not None else build_sample_catalog()
    app.state.recorder = recorder if recorder is not None else InMemoryAttemptRecorder()
    app.state.tick_interval = tick_interval

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # session middleware: read the session id cookie, issue a new one if missing
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    return app
