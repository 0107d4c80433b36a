"""Unit tests for application lifecycle transitions."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from app.errors import (
    AlreadyApprovedError, AlreadyRejectedError, ApplicationNotFoundError,
    NotApprovedError, NotCompletedError, TagAlreadyAssignedError,
)
from app.services import lifecycle_service
from conftest import make_application


def mock_db(application, tag_holder=None):
    db = MagicMock()
    db.get.return_value = application
    db.query.return_value.filter.return_value.first.return_value = tag_holder
    return db


class TestApproveReject:
    @pytest.mark.asyncio
    async def test_approve_pending(self):
        app = make_application(id=1)
        db = mock_db(app)
        with patch("app.services.lifecycle_service.dispatch_notification") as mock_notify:
            result = await lifecycle_service.approve(db, 1, "admin-1")

        assert result.status == "approved"
        assert result.reviewed_by == "admin-1"
        db.commit.assert_called_once()
        mock_notify.assert_called_once()
        assert mock_notify.call_args[0][0] == "user-1"
        assert mock_notify.call_args[0][1]["type"] == "success"

    @pytest.mark.asyncio
    async def test_approve_twice_fails(self):
        app = make_application(id=1)
        db = mock_db(app)
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.approve(db, 1, "admin-1")
            with pytest.raises(AlreadyApprovedError) as exc:
                await lifecycle_service.approve(db, 1, "admin-2")

        assert exc.value.code == "ALREADY_APPROVED"
        assert app.status == "approved"
        assert app.reviewed_by == "admin-1"

    @pytest.mark.asyncio
    async def test_rejected_can_be_reapproved(self):
        app = make_application(id=1, status="rejected", reviewed_by="admin-1")
        db = mock_db(app)
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.approve(db, 1, "admin-2")

        assert app.status == "approved"
        assert app.reviewed_by == "admin-2"
        db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_application(self):
        db = MagicMock()
        db.get.return_value = None
        with pytest.raises(ApplicationNotFoundError):
            await lifecycle_service.approve(db, 404, "admin-1")

    @pytest.mark.asyncio
    async def test_reject_with_reason(self):
        app = make_application(id=1, status="approved")
        db = mock_db(app)
        with patch("app.services.lifecycle_service.dispatch_notification") as mock_notify:
            await lifecycle_service.reject(db, 1, "admin-1", reason="Blurry OR/CR copy")

        assert app.status == "rejected"
        assert "Reason: Blurry OR/CR copy" in mock_notify.call_args[0][1]["message"]

    @pytest.mark.asyncio
    async def test_reject_revokes_completed_pass(self):
        app = make_application(id=1, status="completed", rfid_tag_id="TAG-1", rfid_is_active=True)
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.reject(mock_db(app), 1, "admin-1", reason="Fraudulent OR")

        assert app.status == "rejected"
        assert app.rfid_tag_id == "TAG-1"

    @pytest.mark.asyncio
    async def test_reject_twice_fails(self):
        db = mock_db(make_application(id=1, status="rejected"))
        with pytest.raises(AlreadyRejectedError):
            await lifecycle_service.reject(db, 1, "admin-1")

    @pytest.mark.asyncio
    async def test_walkin_approval_skips_notification_target(self):
        app = make_application(id=1, linked_user_id=None)
        with patch("app.services.lifecycle_service.dispatch_notification") as mock_notify:
            await lifecycle_service.approve(mock_db(app), 1, "admin-1")
        assert mock_notify.call_args[0][0] is None


class TestIssueRfid:
    @pytest.mark.asyncio
    async def test_issue_completes_application(self):
        app = make_application(id=1, status="approved")
        db = mock_db(app)
        payment = {"or_receipt_number": "R-555", "amount": 250.0, "cashier_name": "Ana"}
        with patch("app.services.lifecycle_service.dispatch_notification") as mock_notify:
            await lifecycle_service.issue_rfid(db, 1, "TAG-99", "admin-1", payment=payment)

        assert app.status == "completed"
        assert app.rfid_tag_id == "TAG-99"
        assert app.rfid_is_active is True
        assert app.rfid_assigned_by == "admin-1"
        assert app.or_receipt_number == "R-555" and app.amount == 250.0
        assert app.paid_at is not None
        assert app.rfid_valid_until.year == app.rfid_assigned_at.year + 1
        assert mock_notify.call_args[0][1]["data"]["tagId"] == "TAG-99"

    @pytest.mark.asyncio
    async def test_explicit_valid_until_kept(self):
        app = make_application(id=1, status="approved")
        until = datetime(2030, 1, 1)
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.issue_rfid(mock_db(app), 1, "TAG-99", "admin-1", valid_until=until)
        assert app.rfid_valid_until == until

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["pending", "completed", "rejected"])
    async def test_issue_requires_approved(self, status):
        app = make_application(id=1, status=status)
        db = mock_db(app)
        with pytest.raises(NotApprovedError) as exc:
            await lifecycle_service.issue_rfid(db, 1, "TAG-99", "admin-1")

        assert exc.value.code == "NOT_APPROVED"
        assert app.status == status
        assert app.rfid_tag_id is None
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_tag_bound_elsewhere(self):
        holder = make_application(id=2, plate_number="XYZ9", status="completed", rfid_tag_id="TAG-99")
        app = make_application(id=1, status="approved")
        db = mock_db(app, tag_holder=holder)
        with pytest.raises(TagAlreadyAssignedError):
            await lifecycle_service.issue_rfid(db, 1, "TAG-99", "admin-1")

        assert app.status == "approved" and app.rfid_tag_id is None
        assert holder.rfid_tag_id == "TAG-99"
        db.commit.assert_not_called()


class TestAssignAndDeactivate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["approved", "completed"])
    async def test_assign_accepts_approved_or_completed(self, status):
        app = make_application(id=1, status=status, rfid_tag_id="OLD" if status == "completed" else None)
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.assign_tag(mock_db(app), 1, "TAG-NEW", "admin-1")

        assert app.status == "completed"
        assert app.rfid_tag_id == "TAG-NEW"
        assert app.rfid_valid_until == lifecycle_service.default_valid_until(app.rfid_assigned_at)
        assert app.paid_at is None

    @pytest.mark.asyncio
    async def test_assign_same_tag_to_same_application_allowed(self):
        app = make_application(id=1, status="completed", rfid_tag_id="TAG-1")
        with patch("app.services.lifecycle_service.dispatch_notification"):
            await lifecycle_service.assign_tag(mock_db(app, tag_holder=app), 1, "TAG-1", "admin-1")
        assert app.rfid_is_active is True

    @pytest.mark.asyncio
    async def test_assign_pending_refused(self):
        with pytest.raises(NotApprovedError):
            await lifecycle_service.assign_tag(mock_db(make_application(id=1)), 1, "TAG-1", "admin-1")

    @pytest.mark.asyncio
    async def test_deactivate_keeps_status(self):
        app = make_application(id=1, status="completed", rfid_tag_id="TAG-1", rfid_is_active=True)
        with patch("app.services.lifecycle_service.dispatch_notification") as mock_notify:
            await lifecycle_service.deactivate_tag(mock_db(app), 1, reason="Lost tag")

        assert app.status == "completed"
        assert app.rfid_is_active is False
        assert app.rfid_tag_id == "TAG-1"
        assert mock_notify.call_args[0][1]["data"]["reason"] == "Lost tag"

    @pytest.mark.asyncio
    async def test_deactivate_requires_completed(self):
        with pytest.raises(NotCompletedError):
            await lifecycle_service.deactivate_tag(mock_db(make_application(id=1, status="approved")), 1)


class TestValidity:
    def test_one_calendar_year(self):
        assert lifecycle_service.default_valid_until(datetime(2026, 5, 17, 9, 30)) == datetime(2027, 5, 17, 9, 30)

    def test_leap_day_clamps(self):
        assert lifecycle_service.default_valid_until(datetime(2028, 2, 29, 12, 0)) == datetime(2029, 2, 28, 12, 0)
