import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from aura import __version__
from aura.core.config import ServerConfig
from aura.core.database import get_database_path, init_database

from .deps import get_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info(f"Aura API ready (database: {get_database_path()})")
    yield


app = FastAPI(title="Aura Web API", version=__version__, lifespan=lifespan)

# CORS: Allow environment override for production (`aura serve` exports the
# configured origins here)
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = (
    [origin.strip() for origin in allowed_origins_env.split(",") if origin.strip()]
    if allowed_origins_env
    else ServerConfig().allowed_origins  # Dev default
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from web.backend.routers import activity, live, schedules, stats, styles, terminals

app.include_router(terminals.router, prefix="/api")
app.include_router(schedules.router, prefix="/api")
app.include_router(styles.router, prefix="/api", tags=["styles"])
app.include_router(live.router, prefix="/api", tags=["live"])
app.include_router(activity.router, prefix="/api", tags=["activity"])
app.include_router(stats.router, prefix="/api", tags=["stats"])


@app.get("/health")
async def health_check(conn=Depends(get_db)):
    conn.execute("SELECT 1")
    return {"status": "healthy"}
