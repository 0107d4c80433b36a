# app/services/scan_evaluator.py
"""
Gate scan evaluation: decides ALLOW/DENY for one RFID tag and writes the audit row.

Decision order (first match wins, order is part of the gate wire contract):
  1. TAG_NOT_FOUND              no application bound to the tag        → 404
  2. TAG_INACTIVE               tag missing or switched off            → 423
  3. APPLICATION_NOT_COMPLETED  status is not completed                → 409
  4. TAG_EXPIRED                valid_until strictly before now        → 410
  5. TAG_VALID                  access granted                         → 200

Every call writes exactly one RFIDScan row, including the system-error path
(SYSTEM_ERROR → 500). evaluate() never raises and never mutates the application.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from sqlalchemy.orm import Session
from app.models.application import VehiclePassApplication, STATUS_COMPLETED
from app.models.rfid_scan import RFIDScan, RESULT_SUCCESS, RESULT_DENIED, RESULT_ERROR
from app.services.tag_binding import find_application_by_tag
from app.utils.logger import get_logger

logger = get_logger(__name__)


class VerdictCode(str, Enum):
    TAG_VALID = "TAG_VALID"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    TAG_INACTIVE = "TAG_INACTIVE"
    APPLICATION_NOT_COMPLETED = "APPLICATION_NOT_COMPLETED"
    TAG_EXPIRED = "TAG_EXPIRED"
    SYSTEM_ERROR = "SYSTEM_ERROR"


# code → (http status, scan result, audit message, response message)
VERDICTS = {
    VerdictCode.TAG_VALID: (200, RESULT_SUCCESS, "Access granted", "RFID tag is valid and active"),
    VerdictCode.TAG_NOT_FOUND: (404, RESULT_DENIED, "RFID tag not found",
                                "RFID tag is not assigned to any application"),
    VerdictCode.TAG_INACTIVE: (423, RESULT_DENIED, "RFID tag is not active", "RFID tag is not active"),
    VerdictCode.APPLICATION_NOT_COMPLETED: (409, RESULT_DENIED, "Application not completed",
                                            "Vehicle pass application is not marked as completed"),
    VerdictCode.TAG_EXPIRED: (410, RESULT_DENIED, "RFID tag expired", "RFID tag validity has expired"),
    VerdictCode.SYSTEM_ERROR: (500, RESULT_ERROR, "System error occurred", "System error occurred"),
}


@dataclass
class ScanContext:
    """Scanner-supplied details recorded alongside the verdict."""
    scan_type: str = "validation"
    direction: str = "both"
    system_status: Optional[str] = None
    battery_level: Optional[float] = None
    signal_strength: Optional[float] = None
    metadata: Optional[dict] = None


@dataclass
class ScanVerdict:
    code: VerdictCode
    scan_id: Optional[int]
    timestamp: datetime
    application: Optional[dict] = None
    error_message: Optional[str] = field(default=None, repr=False)

    @property
    def success(self) -> bool:
        return self.code is VerdictCode.TAG_VALID

    @property
    def http_status(self) -> int:
        return VERDICTS[self.code][0]

    @property
    def message(self) -> str:
        return VERDICTS[self.code][3]

    def to_response(self) -> dict[str, Any]:
        body = {
            "success": self.success,
            "code": self.code.value,
            "message": self.message,
            "scanId": self.scan_id,
            "timestamp": self.timestamp,
        }
        if self.application is not None:
            body["application"] = self.application
        return body


def decide(application: Optional[VehiclePassApplication], now: datetime) -> VerdictCode:
    """Pure decision for a resolved application. Order must not change."""
    if application is None:
        return VerdictCode.TAG_NOT_FOUND
    if not application.rfid_tag_id or not application.rfid_is_active:
        return VerdictCode.TAG_INACTIVE
    if application.status != STATUS_COMPLETED:
        return VerdictCode.APPLICATION_NOT_COMPLETED
    if application.rfid_valid_until is not None and now > application.rfid_valid_until:
        return VerdictCode.TAG_EXPIRED
    return VerdictCode.TAG_VALID


def _snapshot(application: VehiclePassApplication) -> dict:
    """Read-only view handed to the gate display on success."""
    return {
        "id": application.id,
        "status": application.status,
        "rfidInfo": {
            "tagId": application.rfid_tag_id,
            "isActive": bool(application.rfid_is_active),
            "assignedAt": application.rfid_assigned_at,
            "validUntil": application.rfid_valid_until,
        },
        "vehicleInfo": application.vehicle_info(),
    }


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _scan_row(tag_id: str, context: ScanContext, code: VerdictCode, started: float,
              application: Optional[VehiclePassApplication] = None,
              error_message: Optional[str] = None) -> RFIDScan:
    _, result, scan_message, _ = VERDICTS[code]
    return RFIDScan(
        tag_id=tag_id,
        user_id=application.linked_user_id if application is not None else None,
        application_id=application.id if application is not None else None,
        scan_type=context.scan_type,
        direction=context.direction,
        scan_result=result,
        scan_message=scan_message,
        error_code=None if code is VerdictCode.TAG_VALID else code.value,
        error_message=error_message,
        scan_timestamp=datetime.utcnow(),
        response_time_ms=_elapsed_ms(started),
        system_status=context.system_status or ("offline" if code is VerdictCode.SYSTEM_ERROR else "online"),
        battery_level=context.battery_level,
        signal_strength=context.signal_strength,
        scan_metadata=context.metadata,
    )


def _record_system_error(db: Session, tag_id: str, context: ScanContext,
                         error: Exception, started: float) -> ScanVerdict:
    """Best-effort audit of a failed evaluation. Returns SYSTEM_ERROR even if the audit write fails too."""
    logger.error(f"[SCAN] System error evaluating tag {tag_id}: {error}", exc_info=True)
    row = _scan_row(tag_id or "UNKNOWN", context, VerdictCode.SYSTEM_ERROR, started,
                    error_message=str(error))
    timestamp = row.scan_timestamp
    try:
        db.rollback()
        db.add(row)
        db.flush()
        scan_id = row.id
        db.commit()
        return ScanVerdict(VerdictCode.SYSTEM_ERROR, scan_id, timestamp, error_message=str(error))
    except Exception as audit_error:
        logger.critical(f"[SCAN] Could not write error scan record for tag {tag_id}: {audit_error}")
        return ScanVerdict(VerdictCode.SYSTEM_ERROR, None, timestamp, error_message=str(error))


async def evaluate(tag_id: str, context: ScanContext, db: Session) -> ScanVerdict:
    """Resolve tag_id, decide, write one RFIDScan row, return the verdict."""
    started = time.perf_counter()
    try:
        application = find_application_by_tag(db, tag_id)
        code = decide(application, datetime.utcnow())
        # Snapshot before commit: committing expires loaded attributes
        snapshot = _snapshot(application) if code is VerdictCode.TAG_VALID else None
        application_id = application.id if application is not None else None

        row = _scan_row(tag_id, context, code, started, application)
        timestamp, response_ms = row.scan_timestamp, row.response_time_ms
        db.add(row)
        db.flush()
        scan_id = row.id
        db.commit()
    except Exception as e:
        return _record_system_error(db, tag_id, context, e, started)

    if code is VerdictCode.TAG_VALID:
        logger.info(f"[SCAN] GRANTED tag={tag_id} app={application_id} "
                    f"plate={snapshot['vehicleInfo']['plateNumber']} ({response_ms}ms)")
    else:
        logger.warning(f"[SCAN] DENIED tag={tag_id} code={code.value} app={application_id}")
    return ScanVerdict(code, scan_id, timestamp, snapshot)


def probe(db: Session, tag_id: str) -> int:
    """Status-code-only check for lightweight readers. Same decision order, no audit row."""
    try:
        return VERDICTS[decide(find_application_by_tag(db, tag_id), datetime.utcnow())][0]
    except Exception as e:
        logger.error(f"[SCAN] Probe failed for tag {tag_id}: {e}")
        return VERDICTS[VerdictCode.SYSTEM_ERROR][0]
