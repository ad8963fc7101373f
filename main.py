"""
Event RSVP System - FastAPI Backend
Main application entry point
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from rsvp_app.core.config import settings
from rsvp_app.core.db import engine, Base
from rsvp_app.api import routes_admin, routes_client, routes_guest, routes_public
from rsvp_app.services.storage_service import LOCAL_PREFIX, MEDIA_URL_PATH
from rsvp_app.utils.responses import error_response

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Event RSVP System",
    description="Invitation links, guest resolution and RSVP collection for events",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return error_response(
        message="Internal server error",
        error_code="database_error",
        status_code=500
    )

# Mount static files
media_dir = os.path.join(settings.UPLOAD_DIR, LOCAL_PREFIX)
os.makedirs("static", exist_ok=True)
os.makedirs(media_dir, exist_ok=True)
app.mount("/static", StaticFiles(directory="static"), name="static")
app.mount(MEDIA_URL_PATH, StaticFiles(directory=media_dir), name="media")

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_guest.router, prefix="/rsvp", tags=["rsvp"])
app.include_router(routes_client.router, prefix="/client", tags=["client"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {"name": settings.SITE_NAME, "status": "ok"}

# Short URLs match any single path segment, so they go last
app.include_router(routes_public.short_link_router, tags=["short-urls"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
