"""
Main FastAPI application.
- SQLAlchemy 2.x patterns only
- Preflight database test
- Typed inventory errors mapped to HTTP status codes
"""
from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text
from contextlib import asynccontextmanager
import logging

from catalog_inventory.config import settings
from catalog_inventory.database import Base, engine, get_db, test_connection
from catalog_inventory.exceptions import ErrorKind, InventoryError
from catalog_inventory.routers import inventory_router, reports_router
from catalog_inventory import models  # noqa: F401  (registers tables on Base)

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FAILED_PRECONDITION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events.
    Contract: Preflight test to prevent startup crashes.
    """
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")

    logger.info("Running preflight database test...")
    success, message = test_connection()
    if not success:
        logger.error(f"Preflight test failed: {message}")
    else:
        logger.info(f"Preflight test passed: {message}")
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables verified")
        except SQLAlchemyError as e:
            logger.warning(f"Database table creation: {e}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")

async def inventory_error_handler(request: Request, exc: InventoryError):
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.to_dict()},
    )

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Catalog inventory backend - append-only stock ledger and reports",
        version=settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InventoryError, inventory_error_handler)

    app.include_router(inventory_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")

    @app.get("/health")
    def health_check(db: Session = Depends(get_db)):
        """
        System health check.
        Contract: Shows DB status, fail gracefully if database is unavailable.
        """
        try:
            db.execute(text("SELECT 1"))
            db_status = "connected"
        except SQLAlchemyError as e:
            db_status = f"error: {str(e)}"
            logger.warning(f"Health check database error: {e}")

        return {
            "status": "healthy",
            "service": "catalog-inventory",
            "database": db_status,
            "version": settings.APP_VERSION,
        }

    @app.get("/")
    def root():
        return {
            "message": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "endpoints": {
                "docs": "/api/docs",
                "health": "/health",
                "inventory": "/api/inventory",
                "reports": "/api/reports",
            }
        }

    return app

app = create_app()
