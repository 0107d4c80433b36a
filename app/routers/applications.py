# app/routers/applications.py
"""
Vehicle pass intake.
POST /vehicle-passes/application   — online application by the signed-in user.
POST /walkins/application          — walk-in application entered by an admin.
Attachment endpoints manage document references while the application is pending.
"""

from typing import Literal, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.application import ApplicationCreate, ApplicationOut, AttachmentIn, AttachmentOut
from app.services import application_service
from app.services.application_service import to_application_out
from app.utils.logger import get_logger
from app.utils.security import CurrentUser, get_current_user, require_admin

router = APIRouter()
logger = get_logger(__name__)

DocumentType = Literal["orCrCopy", "driversLicenseCopy", "authLetter", "deedOfSale"]


@router.post("/vehicle-passes/application", response_model=ApplicationOut,
             status_code=status.HTTP_201_CREATED, summary="Submit a vehicle pass application")
async def submit_application(body: ApplicationCreate, db: Session = Depends(get_db),
                             user: CurrentUser = Depends(get_current_user)):
    application = await application_service.create_application(db, body, linked_user_id=user.id)
    return to_application_out(application)


@router.post("/walkins/application", response_model=ApplicationOut,
             status_code=status.HTTP_201_CREATED, summary="Create a walk-in application (admin)")
async def create_walkin(body: ApplicationCreate, db: Session = Depends(get_db),
                        admin: CurrentUser = Depends(require_admin)):
    application = await application_service.create_application(db, body, linked_user_id=None)
    return to_application_out(application)


@router.get("/vehicle-passes/my-applications", response_model=list[ApplicationOut])
def my_applications(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return [to_application_out(a) for a in application_service.list_user_applications(db, user.id)]


@router.get("/vehicle-passes/{application_id}", response_model=ApplicationOut)
def get_my_application(application_id: int, db: Session = Depends(get_db),
                       user: CurrentUser = Depends(get_current_user)):
    return to_application_out(application_service.get_accessible_application(db, application_id, user))


@router.put("/vehicle-passes/{application_id}/attachments/{document_type}", response_model=AttachmentOut,
            summary="Attach (or replace) a document reference")
def put_attachment(application_id: int, document_type: DocumentType, body: AttachmentIn,
                   db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    application = application_service.get_accessible_application(db, application_id, user)
    attachment, replaced = application_service.put_attachment(db, application, document_type, body)
    if replaced is not None:
        # Blob release is the blob store's job; leave a trail for it
        logger.info(f"Blob {replaced.file_id} no longer referenced by application {application_id}")
    return application_service.attachment_out(attachment)


@router.delete("/vehicle-passes/{application_id}/attachments/{document_type}",
               summary="Remove a document reference")
def delete_attachment(application_id: int, document_type: DocumentType, fileId: Optional[str] = None,
                      db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    application = application_service.get_accessible_application(db, application_id, user)
    removed = application_service.remove_attachment(db, application, document_type, fileId)
    return {"status": "removed", "documentType": document_type, "fileIds": [a.file_id for a in removed]}
