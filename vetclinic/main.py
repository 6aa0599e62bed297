"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth import models  # noqa: F401  registers the tables on Base.metadata
from .auth.gate import authentication_gate
from .auth.reset_tokens import purge_expired
from .auth.router import client_router, password_router, router as auth_router
from .config import settings
from .core.bootstrap import bootstrap_admin_if_needed
from .core.middleware import setup_middlewares
from .database import Base, SessionLocal, engine
from .exceptions import register_exception_handlers
from .users.router import router as users_router

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables, bootstrap the first admin and drop stale reset tokens.
    """
    logger.info("Starting Veterinary Clinic API...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        bootstrap_admin_if_needed(db)
        purge_expired(db)
    finally:
        db.close()

    yield
    logger.info("Veterinary Clinic API stopped")


# Create FastAPI application
app = FastAPI(
    title="Veterinary Clinic API",
    description="Authentication, audit and user administration for the veterinary clinic",
    version=API_VERSION,
    lifespan=lifespan,
    dependencies=[Depends(authentication_gate)],
)

# Register exception handlers
register_exception_handlers(app)

# Setup custom middleware
setup_middlewares(app)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Include routers
app.include_router(auth_router)
app.include_router(client_router)
app.include_router(password_router)
app.include_router(users_router)


# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Welcome message and API version
    """
    return {"message": "Welcome to Veterinary Clinic API", "version": API_VERSION}


# Health check endpoint
@app.get("/health")
def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": engine.dialect.name}
