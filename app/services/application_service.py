# app/services/application_service.py
"""
Vehicle pass intake and attachment references.

Plate / OR / CR numbers are unique across ALL applications (not per user).
The lookup here names every clashing field; the unique constraints on the
table catch the concurrent-insert case.
"""

import math
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.errors import (
    AccessDeniedError, AttachmentLockedError, AttachmentNotFoundError, DuplicateVehicleError,
)
from app.models.application import VehiclePassApplication, STATUS_PENDING
from app.models.attachment import (
    ApplicationAttachment, DOCUMENT_DISPLAY_NAMES, MULTI_FILE_DOCUMENTS,
    DOC_OR_CR_COPY, DOC_DRIVERS_LICENSE,
)
from app.schemas.application import (
    ApplicationCreate, ApplicationOut, ApplicantOut, AttachmentIn, AttachmentOut,
    PaymentInfoOut, RfidInfoOut, VehicleInfoOut,
)
from app.services.lifecycle_service import get_application
from app.utils.logger import get_logger
from app.utils.security import CurrentUser

logger = get_logger(__name__)


def find_duplicate_fields(db: Session, plate_number: str, or_number: str, cr_number: str) -> list[str]:
    """Names of the vehicle identifiers already registered, in plate / OR / CR order."""
    clashes = (
        db.query(VehiclePassApplication)
        .filter(or_(
            VehiclePassApplication.plate_number == plate_number,
            VehiclePassApplication.or_number == or_number,
            VehiclePassApplication.cr_number == cr_number,
        ))
        .all()
    )
    fields = []
    if any(a.plate_number == plate_number for a in clashes):
        fields.append("plate number")
    if any(a.or_number == or_number for a in clashes):
        fields.append("OR number")
    if any(a.cr_number == cr_number for a in clashes):
        fields.append("CR number")
    return fields


async def create_application(db: Session, payload: ApplicationCreate,
                             linked_user_id: Optional[str] = None) -> VehiclePassApplication:
    """Create a pending application. linked_user_id is None for admin walk-ins."""
    duplicates = find_duplicate_fields(db, payload.plate_number, payload.or_number, payload.cr_number)
    if duplicates:
        logger.warning(f"[INTAKE] Duplicate vehicle {payload.plate_number}: {duplicates}")
        raise DuplicateVehicleError(duplicates)

    application = VehiclePassApplication(
        **payload.model_dump(),
        linked_user_id=linked_user_id,
        status=STATUS_PENDING,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        duplicates = find_duplicate_fields(db, payload.plate_number, payload.or_number, payload.cr_number)
        raise DuplicateVehicleError(duplicates or ["plate number", "OR number", "CR number"])
    db.refresh(application)

    source = f"user {linked_user_id}" if linked_user_id else "walk-in"
    logger.info(f"[INTAKE] Application {application.id} created ({source}) plate={application.plate_number}")
    return application


def get_accessible_application(db: Session, application_id: int, user: CurrentUser) -> VehiclePassApplication:
    """Admins see everything; users only their own applications."""
    application = get_application(db, application_id)
    if not user.is_admin and application.linked_user_id != user.id:
        raise AccessDeniedError()
    return application


def list_user_applications(db: Session, user_id: str) -> list[VehiclePassApplication]:
    return (
        db.query(VehiclePassApplication)
        .filter(VehiclePassApplication.linked_user_id == user_id)
        .order_by(VehiclePassApplication.created_at.desc())
        .all()
    )


def list_applications(db: Session, status: Optional[str] = None, search: Optional[str] = None,
                      page: int = 1, limit: int = 20) -> tuple[list[VehiclePassApplication], int]:
    """Admin listing. Returns (page of applications, total matching)."""
    q = db.query(VehiclePassApplication)
    if status:
        q = q.filter(VehiclePassApplication.status == status)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            VehiclePassApplication.plate_number.ilike(pattern),
            VehiclePassApplication.family_name.ilike(pattern),
            VehiclePassApplication.given_name.ilike(pattern),
            VehiclePassApplication.id_number.ilike(pattern),
            VehiclePassApplication.rfid_tag_id.ilike(pattern),
        ))
    total = q.count()
    rows = (
        q.order_by(VehiclePassApplication.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


# ── Attachments ──────────────────────────────────────────────────────────────

def _ensure_editable(application: VehiclePassApplication) -> None:
    if application.status != STATUS_PENDING:
        raise AttachmentLockedError()


def put_attachment(db: Session, application: VehiclePassApplication, document_type: str,
                   ref: AttachmentIn) -> tuple[ApplicationAttachment, Optional[ApplicationAttachment]]:
    """
    Add (orCrCopy) or replace (single-file types) a document reference.
    Returns (new attachment, replaced attachment or None) so the caller can
    release the replaced blob.
    """
    _ensure_editable(application)

    replaced = None
    if document_type not in MULTI_FILE_DOCUMENTS:
        replaced = next((a for a in application.attachments if a.document_type == document_type), None)
        if replaced is not None:
            application.attachments.remove(replaced)

    attachment = ApplicationAttachment(document_type=document_type, **ref.model_dump())
    application.attachments.append(attachment)
    db.commit()
    db.refresh(attachment)
    logger.info(f"[ATTACH] {document_type} on application {application.id} "
                f"{'replaced' if replaced else 'added'} (file {ref.file_id})")
    return attachment, replaced


def remove_attachment(db: Session, application: VehiclePassApplication, document_type: str,
                      file_id: Optional[str] = None) -> list[ApplicationAttachment]:
    """Remove all references of document_type (or just file_id). Returns what was removed."""
    _ensure_editable(application)

    removed = [
        a for a in application.attachments
        if a.document_type == document_type and (file_id is None or a.file_id == file_id)
    ]
    if not removed:
        raise AttachmentNotFoundError()
    for attachment in removed:
        application.attachments.remove(attachment)
    db.commit()
    logger.info(f"[ATTACH] Removed {len(removed)} {document_type} file(s) from application {application.id}")
    return removed


def has_required_documents(application: VehiclePassApplication) -> bool:
    types = {a.document_type for a in application.attachments}
    return DOC_OR_CR_COPY in types and DOC_DRIVERS_LICENSE in types


# ── Serialisation ────────────────────────────────────────────────────────────

def attachment_out(attachment: ApplicationAttachment, index: int = 0) -> AttachmentOut:
    display = DOCUMENT_DISPLAY_NAMES.get(attachment.document_type, attachment.document_type)
    if attachment.document_type in MULTI_FILE_DOCUMENTS:
        display = f"{display} {index + 1}"
    return AttachmentOut(
        id=attachment.id,
        document_type=attachment.document_type,
        display_name=display,
        file_id=attachment.file_id,
        file_name=attachment.file_name,
        file_size=attachment.file_size,
        mime_type=attachment.mime_type,
        uploaded_at=attachment.uploaded_at,
    )


def to_application_out(application: VehiclePassApplication) -> ApplicationOut:
    counters: dict[str, int] = {}
    attachments = []
    for a in application.attachments:
        attachments.append(attachment_out(a, counters.get(a.document_type, 0)))
        counters[a.document_type] = counters.get(a.document_type, 0) + 1

    payment = None
    if application.paid_at is not None:
        payment = PaymentInfoOut(
            paid_at=application.paid_at,
            or_receipt_number=application.or_receipt_number,
            amount=application.amount,
            cashier_name=application.cashier_name,
        )
    rfid = application.rfid_info()

    return ApplicationOut(
        id=application.id,
        status=application.status,
        linked_user=application.linked_user_id,
        reviewed_by=application.reviewed_by,
        applicant=ApplicantOut(
            family_name=application.family_name,
            given_name=application.given_name,
            middle_name=application.middle_name,
        ),
        home_address=application.home_address,
        school_affiliation=application.school_affiliation,
        other_affiliation=application.other_affiliation,
        id_number=application.id_number,
        contact_number=application.contact_number,
        employment_status=application.employment_status,
        company=application.company,
        purpose=application.purpose,
        guardian_name=application.guardian_name,
        guardian_address=application.guardian_address,
        vehicle_user_type=application.vehicle_user_type,
        vehicle_info=VehicleInfoOut(**{
            "type": application.vehicle_type,
            "plate_number": application.plate_number,
            "or_number": application.or_number,
            "cr_number": application.cr_number,
            "driver_name": application.driver_name,
            "driver_license": application.driver_license,
        }),
        payment_info=payment,
        rfid_info=RfidInfoOut(
            tag_id=rfid["tagId"],
            is_active=rfid["isActive"],
            assigned_at=rfid["assignedAt"],
            assigned_by=rfid["assignedBy"],
            valid_until=rfid["validUntil"],
        ) if rfid else None,
        attachments=attachments,
        has_required_documents=has_required_documents(application),
        created_at=application.created_at,
        updated_at=application.updated_at,
    )
