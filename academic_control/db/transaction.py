import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.core.exceptions import ServiceError, StorageFailure

logger = logging.getLogger(__name__)


async def commit_or_raise(db: AsyncSession, on_integrity_error: ServiceError) -> None:
    """
    Commit the unit of work or roll all of it back.

    A constraint violation becomes `on_integrity_error`; any other storage
    failure is logged and surfaced as StorageFailure. Nothing is retried here.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise on_integrity_error from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Storage failure during commit")
        raise StorageFailure() from e
