# app/schemas/rfid_scan.py
from pydantic import Field
from datetime import datetime
from typing import Any, Literal, Optional
from app.schemas.application import CamelModel


class ScanRequest(CamelModel):
    tag_id: str = Field(min_length=1)
    scan_type: Literal["entry", "exit", "checkpoint", "registration", "validation"] = "validation"
    direction: Literal["in", "out", "both"] = "both"
    system_status: Optional[str] = None
    battery_level: Optional[float] = None
    signal_strength: Optional[float] = None
    metadata: Optional[dict[str, Any]] = None


class RFIDScanOut(CamelModel):
    id: int
    tag_id: str
    user_id: Optional[str]
    application_id: Optional[int]
    scan_type: str
    direction: str
    scan_result: str
    scan_message: Optional[str]
    error_code: Optional[str]
    scan_timestamp: datetime
    response_time_ms: Optional[float]
    system_status: Optional[str]
    battery_level: Optional[float]
    signal_strength: Optional[float]
    scan_metadata: Optional[dict[str, Any]] = None

    class Config:
        from_attributes = True


class ScanHistoryOut(CamelModel):
    scans: list[RFIDScanOut]
    page: int
    total_pages: int
    total_scans: int
    has_next: bool
    has_prev: bool
