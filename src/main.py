"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
import logging
from .auth.router import router as auth_router
from .database import engine
from .config import settings
from .auth.models import Base  # Import all models here for creating tables
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)

logger.info("Starting Pinky Promise Auth API...")

# Create FastAPI application
app = FastAPI(
    title="Pinky Promise Auth API",
    description="Registration, login and token refresh for the Pinky Promise app",
    version="1.0.0"
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router)

# Root endpoint
@app.get("/", response_class=PlainTextResponse)
def root():
    """
    Root endpoint confirming the API is up.
    """
    return "Pinky Promise Auth API is up!"
