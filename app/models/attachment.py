# app/models/attachment.py
"""
Document references attached to an application (OR/CR copies, license, etc).
Only the reference lives here; file bytes are held by the external blob store.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base

DOC_OR_CR_COPY = "orCrCopy"
DOC_DRIVERS_LICENSE = "driversLicenseCopy"
DOC_AUTH_LETTER = "authLetter"
DOC_DEED_OF_SALE = "deedOfSale"

DOCUMENT_DISPLAY_NAMES = {
    DOC_OR_CR_COPY: "OR/CR Copy",
    DOC_DRIVERS_LICENSE: "Driver's License Copy",
    DOC_AUTH_LETTER: "Authorization Letter",
    DOC_DEED_OF_SALE: "Deed of Sale",
}
MULTI_FILE_DOCUMENTS = {DOC_OR_CR_COPY}


class ApplicationAttachment(Base):
    __tablename__ = "application_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("vehicle_pass_applications.id"), nullable=False, index=True)
    document_type = Column(String(30), nullable=False)
    file_id = Column(String(100), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer)
    mime_type = Column(String(100))
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    application = relationship("VehiclePassApplication", back_populates="attachments")

    def __repr__(self):
        return f"<ApplicationAttachment {self.id} app={self.application_id} type={self.document_type}>"
