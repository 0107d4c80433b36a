# app/services/notification_service.py
"""
Push notifications to applicants.

Notifications are fire-and-forget: transitions commit first, then schedule
the send as a background asyncio task. A failed send is logged and dropped,
it never reaches the caller of the transition.

Delivery: POST JSON to NOTIFICATION_WEBHOOK_URL (the push gateway).
If no URL is configured, the notification is only logged.
"""

import asyncio
from datetime import datetime
from typing import Optional

import httpx

from app.config import settings
from app.models.application import VehiclePassApplication
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Keep references so pending sends are not garbage collected mid-flight
_pending_tasks: set = set()


class NotificationSink:
    """Sends a single notification to the push gateway for one user."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None):
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFICATION_WEBHOOK_URL
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    async def notify(self, user_id: str, notification: dict) -> None:
        payload = {
            "userId": user_id,
            "title": notification["title"],
            "message": notification["message"],
            "type": notification.get("type", "info"),
            "data": notification.get("data", {}),
            "read": False,
            "createdAt": datetime.utcnow().isoformat(),
        }
        if not self.configured:
            logger.info(f"[NOTIFY] (log-only) user={user_id} title={payload['title']!r}")
            return

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        logger.info(f"[NOTIFY] Sent to user {user_id}: {payload['title']}")


default_sink = NotificationSink()


async def _deliver(sink: NotificationSink, user_id: str, notification: dict) -> None:
    try:
        await sink.notify(user_id, notification)
    except Exception as e:
        logger.error(f"[NOTIFY] Failed to notify user {user_id}: {e}")


def dispatch_notification(user_id: Optional[str], notification: dict,
                          sink: Optional[NotificationSink] = None) -> Optional[asyncio.Task]:
    """
    Schedule a notification send without waiting for it.
    Returns the scheduled task (None when there is nobody to notify).
    """
    if not user_id:
        logger.debug(f"[NOTIFY] No linked user, skipped {notification['title']!r}")
        return None

    task = asyncio.get_running_loop().create_task(_deliver(sink or default_sink, user_id, notification))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task


# ── Message builders ─────────────────────────────────────────────────────────

def _vehicle_label(application: VehiclePassApplication) -> tuple[str, str, str]:
    first_name = application.given_name or "there"
    vehicle_type = (application.vehicle_type or "vehicle").replace("_", " ")
    return first_name, vehicle_type, application.plate_number


def approved_message(application: VehiclePassApplication) -> dict:
    name, vtype, plate = _vehicle_label(application)
    return {
        "title": "Application Approved! ✅",
        "message": (f"Hi {name}, great news! Your {vtype} vehicle pass application ({plate}) "
                    f"has been approved. You can now proceed with payment to complete your registration."),
        "type": "success",
        "data": {
            "applicationId": str(application.id),
            "vehiclePlate": plate,
            "vehicleType": application.vehicle_type,
            "status": "approved",
            "approvedAt": datetime.utcnow().isoformat(),
        },
    }


def rejected_message(application: VehiclePassApplication, reason: Optional[str]) -> dict:
    name, vtype, plate = _vehicle_label(application)
    detail = f"Reason: {reason}" if reason else "Please check your application details for more information."
    return {
        "title": "Application Update",
        "message": f"Hi {name}, your {vtype} vehicle pass application ({plate}) has been reviewed. {detail}",
        "type": "warning",
        "data": {
            "applicationId": str(application.id),
            "vehiclePlate": plate,
            "vehicleType": application.vehicle_type,
            "status": "rejected",
            "rejectedAt": datetime.utcnow().isoformat(),
            "reason": reason or "No reason provided",
        },
    }


def completed_message(application: VehiclePassApplication) -> dict:
    name, vtype, plate = _vehicle_label(application)
    valid_until = application.rfid_valid_until
    return {
        "title": "Vehicle Pass Completed! 🎉",
        "message": (f"Hi {name}, great news! Your {vtype} vehicle pass ({plate}) has been completed "
                    f"and your RFID tag is now active. You can now use your vehicle pass for campus access."),
        "type": "success",
        "data": {
            "applicationId": str(application.id),
            "tagId": application.rfid_tag_id,
            "vehiclePlate": plate,
            "vehicleType": application.vehicle_type,
            "assignedAt": application.rfid_assigned_at.isoformat() if application.rfid_assigned_at else None,
            "validUntil": valid_until.isoformat() if valid_until else None,
            "status": "completed",
        },
    }


def deactivated_message(application: VehiclePassApplication, reason: Optional[str]) -> dict:
    name, vtype, plate = _vehicle_label(application)
    detail = f"Reason: {reason}" if reason else "Please contact administration for more information."
    return {
        "title": "RFID Tag Deactivated",
        "message": f"Hi {name}, your {vtype} vehicle pass ({plate}) RFID tag has been deactivated. {detail}",
        "type": "warning",
        "data": {
            "applicationId": str(application.id),
            "vehiclePlate": plate,
            "vehicleType": application.vehicle_type,
            "status": "deactivated",
            "deactivatedAt": datetime.utcnow().isoformat(),
            "reason": reason or "No reason provided",
        },
    }
