# app/models/rfid_scan.py
"""
RFID scan audit table.
One row per scan attempt, written once and never updated or deleted.
user_id / application_id are empty when the tag resolved to nothing.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, JSON
from app.database import Base

RESULT_SUCCESS = "success"
RESULT_DENIED = "denied"
RESULT_ERROR = "error"


class RFIDScan(Base):
    __tablename__ = "rfid_scans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tag_id = Column(String(100), nullable=False, index=True)
    user_id = Column(String(64), index=True)
    application_id = Column(Integer, index=True)
    scan_type = Column(String(20), nullable=False)        # entry | exit | checkpoint | registration | validation
    direction = Column(String(10), nullable=False)        # in | out | both
    scan_result = Column(String(10), nullable=False)      # success | denied | error
    scan_message = Column(String(255))
    error_code = Column(String(50))
    error_message = Column(Text)
    scan_timestamp = Column(DateTime, nullable=False, index=True)
    response_time_ms = Column(Float)
    # Scanner telemetry
    system_status = Column(String(20))
    battery_level = Column(Float)
    signal_strength = Column(Float)
    scan_metadata = Column(JSON)

    def __repr__(self):
        return f"<RFIDScan {self.id} tag={self.tag_id} result={self.scan_result} code={self.error_code}>"
