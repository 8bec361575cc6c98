from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import os
import logging

from ..database.connection import DatabaseManager, get_db
from .routes import (
    auth, company, customers, projects, templates, employees, inventory, subcontractors,
    events, goals, documents, messages, calendar, billing, webhooks
)

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info("Starting up Pool CRM API...")
    DatabaseManager.init_db()
    logger.info("Database initialized successfully")
    yield
    logger.info("Shutting down Pool CRM API...")


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Pool CRM API",
    description="Multi-tenant CRM for pool construction companies: customers, projects and expenses, "
                "crews, inventory, documents with e-signature, SMS, calendar sync and billing.",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and session tokens"},
        {"name": "Company", "description": "Company profile and registration whitelist"},
        {"name": "Customers", "description": "Customer records and sales pipeline"},
        {"name": "Projects", "description": "Projects, expenses, milestones and statistics"},
        {"name": "Templates", "description": "Reusable project expense templates"},
        {"name": "Employees", "description": "Crew and staff directory"},
        {"name": "Inventory", "description": "Materials and equipment"},
        {"name": "Subcontractors", "description": "Subcontractors and insurance expiry"},
        {"name": "Events", "description": "Company calendar events"},
        {"name": "Goals", "description": "Business goals and progress"},
        {"name": "Documents", "description": "File storage and electronic signature"},
        {"name": "Messages", "description": "SMS conversations with customers"},
        {"name": "Calendar", "description": "Google Calendar connection and sync"},
        {"name": "Billing", "description": "Subscription checkout and status"},
        {"name": "Webhooks", "description": "Vendor callbacks"},
        {"name": "Health", "description": "Service status"}
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Health check endpoint
@app.get("/", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns basic API status and version information.
    """
    return {
        "message": "Pool CRM API is healthy",
        "version": API_VERSION,
        "status": "operational"
    }


@app.get("/api/health", tags=["Health"])
def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check endpoint.

    Returns health status including database connectivity.
    """
    try:
        db.execute(text("SELECT 1")).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )
    return {
        "status": "healthy",
        "version": API_VERSION,
        "database": "connected"
    }


# Include routers
for module in (auth, company, customers, projects, templates, employees, inventory, subcontractors,
               events, goals, documents, messages, calendar, billing, webhooks):
    app.include_router(module.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "poolcrm.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info"
    )
