"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from podplanner.config import settings
from podplanner.database import Base, check_dialect, engine

from podplanner.routers import auth, episodes, groups, invitations, topics

# Import all models so Base.metadata knows about them
import podplanner.models  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Podcast Planner",
    description="Collaborative episode planning for podcast groups",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session; holds only the user id
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE,
    max_age=settings.SESSION_MAX_AGE,
    https_only=settings.SESSION_HTTPS_ONLY,
    same_site="lax",
)

# Register routers
app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(invitations.router, prefix="/api", tags=["Invitations"])
app.include_router(episodes.router, prefix="/api", tags=["Episodes"])
app.include_router(topics.router, prefix="/api", tags=["Topics"])


@app.on_event("startup")
def on_startup():
    """Refuse unsupported databases; create tables on startup (for SQLite dev mode)."""
    check_dialect(engine.dialect.name)
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("Created SQLite tables at %s", settings.DATABASE_URL)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
