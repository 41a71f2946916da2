import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from watchlog.routers import health, watches, groups, stats
from watchlog.core.config import get_settings
from watchlog.db import Base, engine
from watchlog import models  # noqa: F401  registers tables on Base

settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

app = FastAPI(
    title="WatchLog API",
    description="Personal movie-watch ledger with group sharing",
    version="1.0.0"
)

# CORS middleware
origins_env = settings.CORS_ALLOW_ORIGINS or ""
origins = [o.strip() for o in origins_env.split(",") if o.strip()] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(watches.router)
app.include_router(groups.router)
app.include_router(stats.router)


@app.on_event("startup")
async def init_db():
    # Creates missing tables only; idempotent
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
