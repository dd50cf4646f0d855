import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .exceptions import ConflictError, StoreError

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, what: str = "changes"):
    """Commit the session, mapping store failures onto the billing error taxonomy."""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent update detected while saving %s, changes rolled back", what)
        raise ConflictError("This record was changed by someone else. Reload and try again.")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Store write failed while saving %s", what)
        raise StoreError(f"Could not save the {what}. Please try again.")
