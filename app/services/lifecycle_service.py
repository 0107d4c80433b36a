# app/services/lifecycle_service.py
"""
Application lifecycle transitions (admin actions).

    any (except approved) --approve-->  approved
    approved --issue_rfid-->  completed   (payment + tag binding)
    any (except rejected) --reject-->   rejected
    completed --deactivate_tag--> completed (rfid_is_active=False only)

assign_tag is the direct tag-assignment workflow. It goes through the same
_bind_tag transition as issue_rfid; the only difference is the set of source
statuses it accepts (it also re-tags completed passes).

Every transition is a single commit. Preconditions raise an AccessControlError
subclass before anything is mutated. Notifications are dispatched after the
commit and never affect the result.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.errors import (
    AlreadyApprovedError, AlreadyRejectedError, ApplicationNotFoundError,
    NotApprovedError, NotCompletedError,
)
from app.models.application import (
    VehiclePassApplication, STATUS_APPROVED,
    STATUS_COMPLETED, STATUS_REJECTED,
)
from app.services import notification_service
from app.services.notification_service import NotificationSink, dispatch_notification
from app.services.tag_binding import ensure_tag_available, commit_binding
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Source statuses each tag-binding entry point accepts
ISSUE_RFID_FROM = {STATUS_APPROVED}
ASSIGN_TAG_FROM = {STATUS_APPROVED, STATUS_COMPLETED}


def get_application(db: Session, application_id: int) -> VehiclePassApplication:
    application = db.get(VehiclePassApplication, application_id)
    if application is None:
        raise ApplicationNotFoundError()
    return application


def default_valid_until(assigned_at: datetime) -> datetime:
    """assigned_at + TAG_VALIDITY_YEARS calendar years (29 Feb → 28 Feb)."""
    year = assigned_at.year + settings.TAG_VALIDITY_YEARS
    try:
        return assigned_at.replace(year=year)
    except ValueError:
        return assigned_at.replace(year=year, day=28)


async def approve(db: Session, application_id: int, reviewer_id: str,
                  sink: Optional[NotificationSink] = None) -> VehiclePassApplication:
    application = get_application(db, application_id)
    if application.status == STATUS_APPROVED:
        raise AlreadyApprovedError()

    application.status = STATUS_APPROVED
    application.reviewed_by = reviewer_id
    db.commit()
    db.refresh(application)
    logger.info(f"[LIFECYCLE] Application {application.id} approved by {reviewer_id}")

    dispatch_notification(application.linked_user_id,
                          notification_service.approved_message(application), sink)
    return application


async def reject(db: Session, application_id: int, reviewer_id: str, reason: Optional[str] = None,
                 sink: Optional[NotificationSink] = None) -> VehiclePassApplication:
    application = get_application(db, application_id)
    if application.status == STATUS_REJECTED:
        raise AlreadyRejectedError()

    application.status = STATUS_REJECTED
    application.reviewed_by = reviewer_id
    db.commit()
    db.refresh(application)
    logger.info(f"[LIFECYCLE] Application {application.id} rejected by {reviewer_id} "
                f"(reason: {reason or 'none given'})")

    dispatch_notification(application.linked_user_id,
                          notification_service.rejected_message(application, reason), sink)
    return application


def _bind_tag(db: Session, application: VehiclePassApplication, tag_id: str, admin_id: str,
              valid_until: Optional[datetime], payment: Optional[dict] = None) -> None:
    """Bind tag_id to application and move it to completed. Caller checked the source status."""
    ensure_tag_available(db, tag_id, application.id)

    now = datetime.utcnow()
    if payment is not None:
        application.paid_at = now
        application.or_receipt_number = payment.get("or_receipt_number")
        application.amount = payment.get("amount")
        application.cashier_name = payment.get("cashier_name")

    application.rfid_tag_id = tag_id
    application.rfid_assigned_at = now
    application.rfid_assigned_by = admin_id
    application.rfid_is_active = True
    application.rfid_valid_until = valid_until or default_valid_until(now)
    application.status = STATUS_COMPLETED
    commit_binding(db, application)


async def issue_rfid(db: Session, application_id: int, tag_id: str, admin_id: str,
                     payment: Optional[dict] = None, valid_until: Optional[datetime] = None,
                     sink: Optional[NotificationSink] = None) -> VehiclePassApplication:
    """Record payment, bind the tag and complete an approved application."""
    application = get_application(db, application_id)
    if application.status not in ISSUE_RFID_FROM:
        raise NotApprovedError()

    _bind_tag(db, application, tag_id, admin_id, valid_until, payment or {})
    logger.info(f"[LIFECYCLE] Tag {tag_id} issued to application {application.id} by {admin_id}")

    dispatch_notification(application.linked_user_id,
                          notification_service.completed_message(application), sink)
    return application


async def assign_tag(db: Session, application_id: int, tag_id: str, admin_id: str,
                     sink: Optional[NotificationSink] = None) -> VehiclePassApplication:
    """Bind (or re-bind) a tag to an approved or completed application, valid one year."""
    application = get_application(db, application_id)
    if application.status not in ASSIGN_TAG_FROM:
        raise NotApprovedError("Application must be approved or completed to assign RFID")

    _bind_tag(db, application, tag_id, admin_id, valid_until=None)
    logger.info(f"[LIFECYCLE] Tag {tag_id} assigned to application {application.id} by {admin_id}")

    dispatch_notification(application.linked_user_id,
                          notification_service.completed_message(application), sink)
    return application


async def deactivate_tag(db: Session, application_id: int, reason: Optional[str] = None,
                         sink: Optional[NotificationSink] = None) -> VehiclePassApplication:
    """Switch the tag off. Status stays completed."""
    application = get_application(db, application_id)
    if application.status != STATUS_COMPLETED:
        raise NotCompletedError()

    application.rfid_is_active = False
    db.commit()
    db.refresh(application)
    logger.info(f"[LIFECYCLE] Tag {application.rfid_tag_id} on application {application.id} deactivated "
                f"(reason: {reason or 'none given'})")

    dispatch_notification(application.linked_user_id,
                          notification_service.deactivated_message(application, reason), sink)
    return application
