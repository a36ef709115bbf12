"""
Database configuration with fail-safe features:
- pool_pre_ping=True
- SSL enforced for hosted PostgreSQL
- Bounded statement time on PostgreSQL
- Retry on OperationalError (DB_CONNECT_RETRIES times)
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv
import logging
from typing import Generator
import time

from catalog_inventory.config import settings

# .env is optional, load_dotenv is a no-op without it
load_dotenv()

logger = logging.getLogger(__name__)

Base = declarative_base()

def create_db_engine(database_url: str) -> Engine:
    """Build an engine for SQLite (local/test) or PostgreSQL (production)."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.DB_POOL_TIMEOUT,
            },
            echo=False,
        )

    # Add SSL mode for hosted providers if not present
    if "supabase" in database_url and "sslmode" not in database_url:
        database_url += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=300,           # Recycle connections
        pool_timeout=settings.DB_POOL_TIMEOUT,
        echo=False,
        connect_args={
            "connect_timeout": 10,
            "keepalives": 1,
            "keepalives_idle": 30,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS} -c timezone=utc",
        }
    )

engine = create_db_engine(settings.DATABASE_URL)
logger.info("Database connection configured")

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

def get_db() -> Generator:
    """
    Get database session, retrying the connection check on OperationalError.
    """
    retries = settings.DB_CONNECT_RETRIES
    for attempt in range(retries + 1):
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        except OperationalError as e:
            db.close()
            if attempt == retries:
                logger.error(f"Database connection failed after {retries + 1} attempts: {e}")
                raise
            logger.warning(f"Database connection attempt {attempt + 1} failed, retrying...")
            time.sleep(1)
            continue

        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            db.close()
        return

def test_connection(bind: Engine = None) -> tuple[bool, str]:
    """Test database connection with retry"""
    bind = bind or engine
    retries = settings.DB_CONNECT_RETRIES
    for attempt in range(retries + 1):
        try:
            with bind.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True, "Database connection successful"
        except OperationalError as e:
            if attempt == retries:
                return False, f"Database connection failed: {str(e)}"
            time.sleep(1)
    return False, "Database connection test failed"
