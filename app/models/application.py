# app/models/application.py
"""
Vehicle pass applications table.
One row per (plate, OR, CR) vehicle. Owns the lifecycle status, the payment
record and the RFID tag binding.

Status graph (enforced by lifecycle_service):
    pending --approve--> approved --issue_rfid--> completed
    pending/approved --reject--> rejected
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float
from sqlalchemy.orm import relationship
from app.database import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_COMPLETED = "completed"
STATUS_REJECTED = "rejected"

APPLICATION_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_COMPLETED, STATUS_REJECTED)


class VehiclePassApplication(Base):
    __tablename__ = "vehicle_pass_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    linked_user_id = Column(String(64), index=True)    # None for walk-ins
    reviewed_by = Column(String(64))                   # admin who last changed status

    # Applicant
    family_name = Column(String(100), nullable=False)
    given_name = Column(String(100), nullable=False)
    middle_name = Column(String(100))
    home_address = Column(String(300), nullable=False)
    school_affiliation = Column(String(20), nullable=False)   # student | personnel | other
    other_affiliation = Column(String(100))
    id_number = Column(String(50), nullable=False)
    contact_number = Column(String(50))
    employment_status = Column(String(20), default="n/a", nullable=False)
    company = Column(String(200))
    purpose = Column(String(300))
    guardian_name = Column(String(200))
    guardian_address = Column(String(300))
    vehicle_user_type = Column(String(20), nullable=False)    # owner | driver | passenger

    # Vehicle, each identifier unique across the whole table
    vehicle_type = Column(String(30), nullable=False)
    plate_number = Column(String(20), unique=True, nullable=False, index=True)
    or_number = Column(String(50), unique=True, nullable=False)
    cr_number = Column(String(50), unique=True, nullable=False)
    driver_name = Column(String(200))
    driver_license = Column(String(50))

    status = Column(String(20), default=STATUS_PENDING, nullable=False, index=True)

    # Payment (set when the tag is issued)
    paid_at = Column(DateTime)
    or_receipt_number = Column(String(50))
    amount = Column(Float)
    cashier_name = Column(String(200))

    # RFID binding; the unique constraint makes the binding exclusive at store level
    rfid_tag_id = Column(String(100), unique=True, index=True)
    rfid_assigned_at = Column(DateTime)
    rfid_assigned_by = Column(String(64))
    rfid_is_active = Column(Boolean, default=False, nullable=False)
    rfid_valid_until = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    attachments = relationship(
        "ApplicationAttachment",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="ApplicationAttachment.id",
    )

    @property
    def has_rfid(self) -> bool:
        return self.rfid_tag_id is not None

    def vehicle_info(self) -> dict:
        return {
            "type": self.vehicle_type,
            "plateNumber": self.plate_number,
            "orNumber": self.or_number,
            "crNumber": self.cr_number,
            "driverName": self.driver_name,
            "driverLicense": self.driver_license,
        }

    def rfid_info(self) -> dict | None:
        if not self.has_rfid:
            return None
        return {
            "tagId": self.rfid_tag_id,
            "isActive": bool(self.rfid_is_active),
            "assignedAt": self.rfid_assigned_at,
            "assignedBy": self.rfid_assigned_by,
            "validUntil": self.rfid_valid_until,
        }

    def __repr__(self):
        return f"<VehiclePassApplication {self.id} plate={self.plate_number} status={self.status}>"
