# src/main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from auth.routes import router as auth_router
from posts.routes import router as posts_router
from config import settings
from database import Base, engine

# Register every model on Base.metadata before create_all
import auth.models  # noqa: F401
import posts.models  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Social Feed Backend",
    description="API for a social post feed with likes and comments",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(posts_router, prefix="/api")

os.makedirs(settings.MEDIA_DIR, exist_ok=True)
app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_DIR), name="uploads")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc.__class__.__name__}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.on_event("startup")
async def startup_event():
    """Create missing tables on startup."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready ({engine.url.get_backend_name()}), media stored in {settings.MEDIA_DIR}")

@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Social Feed Backend!"}
