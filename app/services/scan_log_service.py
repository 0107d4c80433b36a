# app/services/scan_log_service.py
"""Read-side queries over the RFID scan audit log (history pages, recent feed)."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.rfid_scan import RFIDScan


def list_user_scans(db: Session, user_id: str, page: int = 1, limit: int = 20,
                    start_date: Optional[datetime] = None,
                    end_date: Optional[datetime] = None) -> tuple[list[RFIDScan], int]:
    """Scans attributed to user_id, newest first. Returns (page, total)."""
    q = db.query(RFIDScan).filter(RFIDScan.user_id == user_id)
    if start_date and end_date:
        q = q.filter(RFIDScan.scan_timestamp >= start_date, RFIDScan.scan_timestamp <= end_date)
    total = q.count()
    scans = (
        q.order_by(RFIDScan.scan_timestamp.desc(), RFIDScan.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return scans, total


def recent_scans(db: Session, limit: int = 50) -> list[RFIDScan]:
    return db.query(RFIDScan).order_by(RFIDScan.scan_timestamp.desc(), RFIDScan.id.desc()).limit(limit).all()
