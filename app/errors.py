# app/errors.py
"""
Domain errors raised by the services layer.
Each carries a stable machine code and the HTTP status the API answers with.
Rendered by the AccessControlError handler in app/main.py.
"""


class AccessControlError(Exception):
    code = "ACCESS_CONTROL_ERROR"
    http_status = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "code": self.code, "error": self.message}


class ApplicationNotFoundError(AccessControlError):
    code = "APPLICATION_NOT_FOUND"
    http_status = 404
    default_message = "Vehicle pass application not found"


class AlreadyApprovedError(AccessControlError):
    code = "ALREADY_APPROVED"
    default_message = "Application is already approved"


class AlreadyRejectedError(AccessControlError):
    code = "ALREADY_REJECTED"
    default_message = "Application is already rejected"


class NotApprovedError(AccessControlError):
    code = "NOT_APPROVED"
    default_message = "Application must be approved before issuing RFID tag"


class NotCompletedError(AccessControlError):
    code = "NOT_COMPLETED"
    default_message = "Application must be completed to deactivate RFID"


class TagAlreadyAssignedError(AccessControlError):
    code = "TAG_ALREADY_ASSIGNED"
    http_status = 409
    default_message = "RFID tag is already assigned to another application"


class DuplicateVehicleError(AccessControlError):
    code = "DUPLICATE_VEHICLE"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Vehicle with the same {', '.join(fields)} has already been registered")


class AttachmentLockedError(AccessControlError):
    code = "ATTACHMENT_LOCKED"
    default_message = "Cannot change files for processed applications"


class AttachmentNotFoundError(AccessControlError):
    code = "ATTACHMENT_NOT_FOUND"
    http_status = 404
    default_message = "File not found"


class AccessDeniedError(AccessControlError):
    code = "ACCESS_DENIED"
    http_status = 403
    default_message = "Access denied"


class StoreNotReadyError(AccessControlError):
    code = "STORE_NOT_READY"
    http_status = 503
    default_message = "Record store is not available"
