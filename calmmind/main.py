# calmmind backend api
# fastapi app with async mongodb, jwt auth, gemini chat and mood analysis

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calmmind.config import settings
from calmmind.errors import AuthError, StorageError
from calmmind.services.db import db
from calmmind.routers import auth, journals, conversations, checkins, mood, dashboard, plans, prompts, breathing, voice

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "Could not save or load your data. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb. shutdown: close connection."""
    logger.info("Starting CalmMind backend...")
    await db.connect()
    logger.info("CalmMind backend ready")
    yield
    logger.info("Shutting down CalmMind backend...")
    await db.close()


app = FastAPI(
    title="CalmMind API",
    description="Backend API for CalmMind — ai companion chat, voice sessions, journaling, mood tracking and weekly plans",
    version="0.1.0",
    lifespan=lifespan,
)

# cors — allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": STORAGE_ERROR_MESSAGE})


# register routers
app.include_router(auth.router)
app.include_router(journals.router)
app.include_router(conversations.router)
app.include_router(checkins.router)
app.include_router(mood.router)
app.include_router(dashboard.router)
app.include_router(plans.router)
app.include_router(prompts.router)
app.include_router(breathing.router)
app.include_router(voice.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {"status": "ok", "service": "calmmind-api"}
