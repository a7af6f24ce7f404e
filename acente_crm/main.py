"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
from fastapi.middleware.cors import CORSMiddleware

from acente_crm import __version__
from acente_crm.config import get_settings
from acente_crm.db.database import init_db

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events.

    Args:
        app: FastAPI application instance.
    """
    # Startup
    init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Policy export import and reconciliation for an insurance agency CRM",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Import and include routers
from acente_crm.customers.router import router as customers_router
from acente_crm.imports.router import router as imports_router
from acente_crm.profiles.router import router as profiles_router

# API routes
app.include_router(imports_router, prefix="/api/customers", tags=["imports"])
app.include_router(customers_router, prefix="/api/customers", tags=["customers"])
app.include_router(profiles_router, prefix="/api/customer-profiles", tags=["customer-profiles"])


@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        dict: Health status.
    """
    return {"status": "healthy", "app": settings.app_name}
