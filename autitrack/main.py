# autitrack backend api
# fastapi app with async sqlalchemy, server-side cookie sessions, and role-based access

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from autitrack.config import settings
from autitrack.services.db import Database
from autitrack.services.session_store import SessionStore, build_session_store
from autitrack.routers import auth, clients, data_entries, notes, sessions, dashboard, practitioners

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    database: Optional[Database] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """build the api around an explicit database handle and session store"""
    db = database or Database()
    store = session_store or build_session_store(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """startup: open the connection pool. shutdown: dispose of it."""
        logger.info("Starting AutiTrack backend...")
        await db.connect()
        pruned = await store.prune()
        logger.info(f"AutiTrack backend ready ({pruned} expired sessions pruned)")
        yield
        logger.info("Shutting down AutiTrack backend...")
        await db.close()

    app = FastAPI(
        title="AutiTrack API",
        description="Backend API for practitioner/client behavioral tracking of clients, check-ins, sessions and notes",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db = db
    app.state.session_store = store

    # cors, so the frontend can to send the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """schema violations are 400 with field-level detail"""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Storage failure on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # register routers
    app.include_router(auth.router)
    app.include_router(practitioners.router)
    app.include_router(clients.router)
    app.include_router(data_entries.router)
    app.include_router(notes.router)
    app.include_router(sessions.router)
    app.include_router(dashboard.router)

    @app.get("/health")
    async def health_check():
        """basic health check endpoint"""
        return {"status": "ok", "service": "autitrack-api"}

    return app


app = create_app()
