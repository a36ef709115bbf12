"""
Base store operations with SQLAlchemy 2.x patterns.
Contract: Use only 2.x syntax - select(), insert(), update().
Store failures are rolled back, logged and re-raised as InternalError.
"""
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.orm import Session
import logging
from typing import TypeVar, Generic, Type, Optional, Callable

from catalog_inventory.config import settings
from catalog_inventory.database import Base
from catalog_inventory.exceptions import InternalError

logger = logging.getLogger(__name__)
ModelType = TypeVar("ModelType", bound=Base)
T = TypeVar("T")

class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _fail(self, db: Session, action: str, e: SQLAlchemyError) -> InternalError:
        db.rollback()
        logger.error(f"Error {action} {self.model.__name__}: {e}")
        return InternalError(f"Store unavailable while {action} {self.model.__name__}")

    def get(self, db: Session, id: int) -> Optional[ModelType]:
        """Get record by ID, always re-reading the row from the database"""
        try:
            stmt = (
                select(self.model)
                .where(self.model.id == id)
                .execution_options(populate_existing=True)
            )
            return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail(db, f"getting {id} of", e) from e

    def exists(self, db: Session, id: int) -> bool:
        try:
            stmt = select(self.model.id).where(self.model.id == id)
            return db.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise self._fail(db, f"checking {id} of", e) from e

    def retry_on_operational_error(
        self, db: Session, operation: Callable[[], T], max_retries: Optional[int] = None
    ) -> T:
        """
        Run a read operation, retrying on OperationalError.
        Any other store failure surfaces as InternalError.
        """
        if max_retries is None:
            max_retries = settings.DB_CONNECT_RETRIES
        for attempt in range(max_retries + 1):
            try:
                return operation()
            except OperationalError as e:
                db.rollback()
                if attempt == max_retries:
                    logger.error(f"Operation failed after {max_retries + 1} attempts: {e}")
                    raise InternalError("Store unavailable") from e
                logger.warning(f"OperationalError on attempt {attempt + 1}, retrying...")
            except SQLAlchemyError as e:
                raise self._fail(db, "reading", e) from e
