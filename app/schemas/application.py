# app/schemas/application.py
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Literal, Optional

VEHICLE_TYPES = {
    "motorcycle", "car", "suv", "tricycle", "double_cab", "single_cab",
    "heavy_truck", "heavy_equipment", "bicycle", "e_vehicle",
}


class CamelModel(BaseModel):
    """Wire format is camelCase (tagId, plateNumber, ...); Python side stays snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


class ApplicationCreate(CamelModel):
    family_name: str = Field(min_length=1)
    given_name: str = Field(min_length=1)
    middle_name: Optional[str] = None
    home_address: str = Field(min_length=1)
    school_affiliation: Literal["student", "personnel", "other"]
    other_affiliation: Optional[str] = None
    id_number: str = Field(min_length=1)
    contact_number: Optional[str] = None
    employment_status: Literal["permanent", "temporary", "casual", "job_order", "n/a"] = "n/a"
    company: Optional[str] = None
    purpose: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_address: Optional[str] = None
    vehicle_user_type: Literal["owner", "driver", "passenger"]
    vehicle_type: str
    plate_number: str = Field(min_length=1)
    or_number: str = Field(min_length=1)
    cr_number: str = Field(min_length=1)
    driver_name: Optional[str] = None
    driver_license: Optional[str] = None

    @field_validator("vehicle_type")
    @classmethod
    def normalise_vehicle_type(cls, v: str) -> str:
        normalised = "_".join(v.lower().split())
        if normalised not in VEHICLE_TYPES:
            raise ValueError(f"Invalid vehicle type: {v}")
        return normalised

    @field_validator("plate_number")
    @classmethod
    def upper_plate(cls, v: str) -> str:
        return v.upper()


class ReasonRequest(CamelModel):
    reason: Optional[str] = None


class IssueRfidRequest(CamelModel):
    tag_id: str = Field(min_length=1)
    or_receipt_number: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    cashier_name: Optional[str] = None
    valid_until: Optional[datetime] = None

    @field_validator("valid_until")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored naive UTC, compared against datetime.utcnow()
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class AssignTagRequest(CamelModel):
    application_id: int
    tag_id: str = Field(min_length=1)


class AttachmentIn(CamelModel):
    file_id: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = None


class AttachmentOut(CamelModel):
    id: int
    document_type: str
    display_name: str
    file_id: str
    file_name: str
    file_size: Optional[int]
    mime_type: Optional[str]
    uploaded_at: datetime


class VehicleInfoOut(CamelModel):
    type: str
    plate_number: str
    or_number: str
    cr_number: str
    driver_name: Optional[str] = None
    driver_license: Optional[str] = None


class RfidInfoOut(CamelModel):
    tag_id: str
    is_active: bool
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    valid_until: Optional[datetime] = None


class PaymentInfoOut(CamelModel):
    paid_at: Optional[datetime] = None
    or_receipt_number: Optional[str] = None
    amount: Optional[float] = None
    cashier_name: Optional[str] = None


class ApplicantOut(CamelModel):
    family_name: str
    given_name: str
    middle_name: Optional[str] = None


class ApplicationOut(CamelModel):
    id: int
    status: str
    linked_user: Optional[str] = None
    reviewed_by: Optional[str] = None
    applicant: ApplicantOut
    home_address: str
    school_affiliation: str
    other_affiliation: Optional[str] = None
    id_number: str
    contact_number: Optional[str] = None
    employment_status: str
    company: Optional[str] = None
    purpose: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_address: Optional[str] = None
    vehicle_user_type: str
    vehicle_info: VehicleInfoOut
    payment_info: Optional[PaymentInfoOut] = None
    rfid_info: Optional[RfidInfoOut] = None
    attachments: list[AttachmentOut] = []
    has_required_documents: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationPage(CamelModel):
    applications: list[ApplicationOut]
    page: int
    total_pages: int
    total: int
