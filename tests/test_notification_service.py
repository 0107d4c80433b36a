"""Unit tests for fire-and-forget applicant notifications."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from app.services import notification_service
from app.services.notification_service import NotificationSink, dispatch_notification
from conftest import make_application

MESSAGE = {"title": "Hello", "message": "World", "type": "info", "data": {"applicationId": "1"}}


class TestNotificationSink:
    @pytest.mark.asyncio
    async def test_log_only_without_url(self):
        sink = NotificationSink(webhook_url="")
        assert not sink.configured
        with patch("app.services.notification_service.httpx.AsyncClient") as mock_client:
            await sink.notify("user-1", MESSAGE)
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_posts_to_gateway(self):
        sink = NotificationSink(webhook_url="http://gateway.local/notify", timeout=2)
        mock_response = MagicMock()
        mock_client = AsyncMock()
        mock_client.post.return_value = mock_response
        mock_client.__aenter__.return_value = mock_client

        with patch("app.services.notification_service.httpx.AsyncClient", return_value=mock_client):
            await sink.notify("user-1", MESSAGE)

        url = mock_client.post.call_args[0][0]
        payload = mock_client.post.call_args[1]["json"]
        assert url == "http://gateway.local/notify"
        assert payload["userId"] == "user-1"
        assert payload["title"] == "Hello"
        assert payload["read"] is False
        mock_response.raise_for_status.assert_called_once()


class TestDispatch:
    @pytest.mark.asyncio
    async def test_no_linked_user_skipped(self):
        sink = MagicMock()
        assert dispatch_notification(None, MESSAGE, sink) is None
        sink.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        sink = MagicMock()
        sink.notify = AsyncMock(side_effect=httpx.ConnectError("gateway down"))

        task = dispatch_notification("user-1", MESSAGE, sink)
        await task

        assert task.exception() is None
        sink.notify.assert_awaited_once_with("user-1", MESSAGE)

    @pytest.mark.asyncio
    async def test_delivery_is_scheduled_not_awaited(self):
        sink = MagicMock()
        sink.notify = AsyncMock()

        task = dispatch_notification("user-1", MESSAGE, sink)
        sink.notify.assert_not_awaited()
        await task
        sink.notify.assert_awaited_once()


class TestMessages:
    def test_rejected_without_reason(self):
        msg = notification_service.rejected_message(make_application(id=3), None)
        assert msg["type"] == "warning"
        assert msg["data"]["reason"] == "No reason provided"
        assert "ABC123" in msg["message"]

    def test_completed_carries_tag(self):
        app = make_application(id=3, status="completed", rfid_tag_id="TAG-5", rfid_is_active=True)
        msg = notification_service.completed_message(app)
        assert msg["data"]["tagId"] == "TAG-5"
        assert msg["data"]["status"] == "completed"

    def test_vehicle_type_humanised(self):
        msg = notification_service.approved_message(make_application(id=3, vehicle_type="double_cab"))
        assert "double cab" in msg["message"]
