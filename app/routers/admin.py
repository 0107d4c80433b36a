# app/routers/admin.py
"""Admin review endpoints: approve / reject / issue RFID / deactivate, plus listings."""

from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.application import ApplicationOut, ApplicationPage, IssueRfidRequest, ReasonRequest
from app.services import lifecycle_service
from app.services.application_service import list_applications, to_application_out, total_pages
from app.utils.security import CurrentUser, require_admin

router = APIRouter(prefix="/admin")


@router.put("/applications/{application_id}/approve", response_model=ApplicationOut)
async def approve_application(application_id: int, db: Session = Depends(get_db),
                              admin: CurrentUser = Depends(require_admin)):
    application = await lifecycle_service.approve(db, application_id, admin.id)
    return to_application_out(application)


@router.put("/applications/{application_id}/reject", response_model=ApplicationOut)
async def reject_application(application_id: int, body: Optional[ReasonRequest] = None,
                             db: Session = Depends(get_db), admin: CurrentUser = Depends(require_admin)):
    application = await lifecycle_service.reject(db, application_id, admin.id, body.reason if body else None)
    return to_application_out(application)


@router.put("/applications/{application_id}/issue-rfid", response_model=ApplicationOut,
            summary="Record payment, bind RFID tag and complete the application")
async def issue_rfid(application_id: int, body: IssueRfidRequest, db: Session = Depends(get_db),
                     admin: CurrentUser = Depends(require_admin)):
    payment = body.model_dump(include={"or_receipt_number", "amount", "cashier_name"})
    application = await lifecycle_service.issue_rfid(
        db, application_id, body.tag_id, admin.id, payment=payment, valid_until=body.valid_until,
    )
    return to_application_out(application)


@router.put("/applications/{application_id}/deactivate-rfid", response_model=ApplicationOut)
async def deactivate_rfid(application_id: int, body: Optional[ReasonRequest] = None,
                          db: Session = Depends(get_db), admin: CurrentUser = Depends(require_admin)):
    application = await lifecycle_service.deactivate_tag(db, application_id, body.reason if body else None)
    return to_application_out(application)


@router.get("/applications/{application_id}", response_model=ApplicationOut)
def get_application(application_id: int, db: Session = Depends(get_db),
                    admin: CurrentUser = Depends(require_admin)):
    return to_application_out(lifecycle_service.get_application(db, application_id))


@router.get("/applications", response_model=ApplicationPage)
def get_applications(status: Optional[Literal["pending", "approved", "completed", "rejected"]] = None,
                     search: Optional[str] = None,
                     page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
                     db: Session = Depends(get_db), admin: CurrentUser = Depends(require_admin)):
    rows, total = list_applications(db, status, search, page, limit)
    return ApplicationPage(
        applications=[to_application_out(a) for a in rows],
        page=page,
        total_pages=total_pages(total, limit),
        total=total,
    )
