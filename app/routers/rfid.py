# app/routers/rfid.py
"""
Gate scanner endpoints + scan history.
POST /rfid/scan         — validate a tag and log the attempt (public, for scanners).
GET  /rfid/scan-status  — status-code-only probe, no body, no audit row (public).
POST /rfid/assign       — bind a tag to an approved/completed application (admin).
GET  /rfid/scans/{uid}  — scan history for a user (admin or the user).
GET  /rfid/recent       — latest scans (admin).
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.errors import AccessDeniedError
from app.schemas.application import ApplicationOut, AssignTagRequest
from app.schemas.rfid_scan import RFIDScanOut, ScanHistoryOut, ScanRequest
from app.services import lifecycle_service, scan_log_service
from app.services.application_service import to_application_out, total_pages
from app.services.scan_evaluator import ScanContext, evaluate, probe
from app.utils.json_parser import is_json_body, read_bare_text, safe_parse_json
from app.utils.logger import get_logger
from app.utils.security import CurrentUser, get_current_user, require_admin

router = APIRouter()
logger = get_logger(__name__)


def _bad_request(code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "code": code, "message": message})


@router.post("/rfid/scan", summary="Scanner — validate RFID tag and log the attempt")
async def scan_tag(request: Request, db: Session = Depends(get_db)):
    """
    Accepts JSON {tagId, scanType?, direction?, systemStatus?, batteryLevel?,
    signalStrength?, metadata?} or a text/plain body holding only the tag id.
    Malformed requests are rejected before evaluation and leave no scan record.
    """
    raw_body = await request.body()
    content_type = request.headers.get("content-type", "")

    if is_json_body(raw_body, content_type):
        data = safe_parse_json(raw_body)
        if data is None:
            return _bad_request("INVALID_PAYLOAD", "Scan payload must be a JSON object")
        if not str(data.get("tagId") or "").strip():
            return _bad_request("TAG_REQUIRED", "RFID tag ID is required")
    else:
        tag_id = read_bare_text(raw_body)
        if not tag_id:
            return _bad_request("TAG_REQUIRED", "RFID tag ID is required")
        data = {"tagId": tag_id}

    try:
        scan = ScanRequest.model_validate(data)
    except ValidationError as e:
        logger.info(f"Rejected scan payload: {e.errors()[0].get('msg')}")
        return _bad_request("INVALID_PAYLOAD", "Invalid scan type or direction")

    context = ScanContext(
        scan_type=scan.scan_type,
        direction=scan.direction,
        system_status=scan.system_status,
        battery_level=scan.battery_level,
        signal_strength=scan.signal_strength,
        metadata=scan.metadata,
    )
    verdict = await evaluate(scan.tag_id, context, db)
    return JSONResponse(status_code=verdict.http_status, content=jsonable_encoder(verdict.to_response()))


@router.get("/rfid/scan-status", summary="Scanner — status code only")
def scan_status(tagId: Optional[str] = None, db: Session = Depends(get_db)):
    if not tagId or not tagId.strip():
        return Response(status_code=400)
    return Response(status_code=probe(db, tagId.strip()))


@router.post("/rfid/assign", response_model=ApplicationOut, summary="Assign RFID tag (admin)")
async def assign_tag(body: AssignTagRequest, db: Session = Depends(get_db),
                     admin: CurrentUser = Depends(require_admin)):
    application = await lifecycle_service.assign_tag(db, body.application_id, body.tag_id, admin.id)
    return to_application_out(application)


@router.get("/rfid/scans/{user_id}", response_model=ScanHistoryOut, summary="Scan history for a user")
def scan_history(user_id: str, page: int = Query(1, ge=1), limit: int = Query(20, ge=1),
                 startDate: Optional[datetime] = None, endDate: Optional[datetime] = None,
                 db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    if not user.is_admin and user.id != user_id:
        raise AccessDeniedError()

    limit = min(limit, settings.SCAN_HISTORY_MAX_LIMIT)
    scans, total = scan_log_service.list_user_scans(db, user_id, page, limit, startDate, endDate)
    return ScanHistoryOut(
        scans=[RFIDScanOut.model_validate(s) for s in scans],
        page=page,
        total_pages=total_pages(total, limit),
        total_scans=total,
        has_next=(page - 1) * limit + len(scans) < total,
        has_prev=page > 1,
    )


@router.get("/rfid/recent", response_model=list[RFIDScanOut], summary="Recent scans (admin)")
def recent_scans(limit: int = Query(50, ge=1), db: Session = Depends(get_db),
                 admin: CurrentUser = Depends(require_admin)):
    limit = min(limit, settings.SCAN_HISTORY_MAX_LIMIT)
    return [RFIDScanOut.model_validate(s) for s in scan_log_service.recent_scans(db, limit)]
