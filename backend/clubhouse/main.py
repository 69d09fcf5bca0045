"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from clubhouse.config import settings
from clubhouse.database import Base, engine

# Import routers
from clubhouse.routers import admin, auth, events, finance, links, partners, posts, profiles

# Import all models so Base.metadata knows about them
from clubhouse.models.principal import Principal, AuthSession, PasswordResetRequest, AuthNotice  # noqa: F401
from clubhouse.models.profile import Profile                    # noqa: F401
from clubhouse.models.event import Event                        # noqa: F401
from clubhouse.models.rsvp import EventRsvp                     # noqa: F401
from clubhouse.models.post import Post, PostLike, Comment       # noqa: F401
from clubhouse.models.audit_log import AuditLog                 # noqa: F401
from clubhouse.models.transaction import FinanceTransaction     # noqa: F401
from clubhouse.models.reference import Link, Partner            # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Clubhouse",
    description="Membership club backend — access control, event reservations and member feed",
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

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
app.include_router(finance.router, prefix="/api/finance", tags=["Finance"])
app.include_router(links.router, prefix="/api/links", tags=["Links"])
app.include_router(partners.router, prefix="/api/partners", tags=["Partners"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
