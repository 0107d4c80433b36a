# app/services/tag_binding.py
"""
RFID tag → application resolution and exclusive binding.

A tag id is bound to at most one application. The read-check below gives a
friendly early error; the unique constraint on rfid_tag_id is what actually
makes the binding exclusive when two admins bind the same tag concurrently
(the losing commit raises IntegrityError and is reported the same way).
"""

from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.errors import TagAlreadyAssignedError
from app.models.application import VehiclePassApplication
from app.utils.logger import get_logger

logger = get_logger(__name__)


def find_application_by_tag(db: Session, tag_id: str) -> Optional[VehiclePassApplication]:
    """Return the application bound to tag_id, or None."""
    return (
        db.query(VehiclePassApplication)
        .filter(VehiclePassApplication.rfid_tag_id == tag_id)
        .first()
    )


def ensure_tag_available(db: Session, tag_id: str, application_id: Optional[int] = None) -> None:
    """Raise TagAlreadyAssignedError if any application other than application_id holds tag_id."""
    holder = find_application_by_tag(db, tag_id)
    if holder is not None and holder.id != application_id:
        logger.warning(f"[BIND] Tag {tag_id} already bound to application {holder.id}")
        raise TagAlreadyAssignedError()


def commit_binding(db: Session, application: VehiclePassApplication) -> None:
    """
    Commit a pending tag binding as one atomic update.
    A unique-constraint violation means another request bound the tag first.
    """
    tag_id = application.rfid_tag_id
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"[BIND] Lost race binding tag {tag_id} to application {application.id}")
        raise TagAlreadyAssignedError()
    db.refresh(application)
