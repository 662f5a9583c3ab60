"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (HTTP API for the admin and trainee frontends)
  2. APScheduler (daily checkpoint notification check)

We use FastAPI's lifespan to manage startup/shutdown. The lifespan pattern
gives us uvicorn's signal handling and --reload for free.

Run with: python main.py [--no-scheduler] [--dev] [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Set up import paths before any local imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import check_required_env_vars, get_api_port, is_scheduler_enabled
from core.database import close_engine, is_configured
from core.notifications.scheduler import init_scheduler, shutdown_scheduler

# Import routes using full paths (don't add web_api to sys.path to avoid main.py conflict)
from web_api.routes.calendar import router as calendar_router
from web_api.routes.courses import router as courses_router
from web_api.routes.notifications import router as notifications_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SENTRY_DSN = os.environ.get("SENTRY_DSN")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=os.environ.get("RAILWAY_ENVIRONMENT", "development"),
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Starts the notification scheduler alongside the HTTP server in the same
    event loop, and closes it and the database engine on shutdown.
    """
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        logger.warning(warning.strip())
    if not ok:
        raise RuntimeError("Missing required environment variables")

    if is_scheduler_enabled():
        logger.info("Starting notification scheduler...")
        init_scheduler()
    else:
        logger.info("Notification scheduler disabled (--no-scheduler or ENABLE_SCHEDULER=false)")

    yield  # FastAPI runs here, scheduler runs alongside it

    logger.info("Shutting down peer services...")
    shutdown_scheduler()
    await close_engine()  # Close database connections


# Create FastAPI app with lifespan
app = FastAPI(
    title="Course Flow API",
    lifespan=lifespan,
)

# CORS configuration
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(notifications_router)
app.include_router(courses_router)
app.include_router(calendar_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "database_configured": is_configured(),
        "scheduler_enabled": is_scheduler_enabled(),
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Course Flow Server")
    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Disable the in-process daily scheduler (use the cron endpoint instead)",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (allows the cron endpoint without CRON_SECRET)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    # Set env vars so they persist across uvicorn reloads
    if args.no_scheduler:
        os.environ["ENABLE_SCHEDULER"] = "false"
    if args.dev:
        os.environ["DEV_MODE"] = "true"

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
