# Campus Pass — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.application import VehiclePassApplication   # noqa
from app.models.attachment import ApplicationAttachment     # noqa
from app.models.rfid_scan import RFIDScan                   # noqa
