"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.middleware import RequestContextMiddleware
from app.api.routes import api_router
from app.logging_config import setup_logging
from app.settings import settings
from app.workers import sweep_worker

# Setup logging
setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Checkout Conversion API",
    description="Lead to client conversion through Asaas hosted checkouts",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request id middleware
app.add_middleware(RequestContextMiddleware)

# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)

# Include worker routes (for the scheduler)
app.include_router(sweep_worker.router, prefix="/workers", tags=["workers"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Checkout Conversion API",
        "version": "0.1.0",
        "docs": "/docs",
    }
