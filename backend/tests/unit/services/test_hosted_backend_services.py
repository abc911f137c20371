#!/usr/bin/env python3
"""
Unit tests for the hosted backend storage, detection and alert services.

The HTTP session is a MagicMock; no network access happens.
"""

from unittest.mock import MagicMock

import pytest
import requests

from pestscan.enums import AlertSeverity, ReportInfestationLevel, ScanType
from pestscan.exceptions import DetectionError, UploadError
from pestscan.services.capture_pipeline.alert_service import (
    SupabaseAlertService,
    build_alert_message,
)
from pestscan.services.capture_pipeline.detection_service import SupabaseDetectionService
from pestscan.services.capture_pipeline.storage_service import SupabaseStorageService
from pestscan.services.capture_pipeline.supabase_client import (
    HostedBackendClient,
    error_message,
)

BASE_URL = "https://project.supabase.test"


def make_response(status_code=200, json_data=None, text=""):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return HostedBackendClient(base_url=BASE_URL + "/", api_key="anon-key", session=session)


@pytest.mark.unit
class TestHostedBackendClient:
    def test_request_sends_auth_headers(self, client, session):
        session.request.return_value = make_response()

        client.request("GET", "rest/v1/alerts", headers={"Accept": "application/json"})

        method, url = session.request.call_args.args
        headers = session.request.call_args.kwargs["headers"]
        assert method == "GET"
        assert url == f"{BASE_URL}/rest/v1/alerts"
        assert headers["apikey"] == "anon-key"
        assert headers["Authorization"] == "Bearer anon-key"
        assert headers["Accept"] == "application/json"
        assert "timeout" not in session.request.call_args.kwargs

    def test_error_message_prefers_json_message(self):
        assert error_message(make_response(400, {"message": "Bucket not found"})) == (
            "Bucket not found"
        )
        assert error_message(make_response(500, text="Bad gateway")) == "Bad gateway"
        assert error_message(make_response(503)) == "HTTP 503"


@pytest.mark.unit
class TestStorageService:
    """Test suite for SupabaseStorageService."""

    @pytest.mark.asyncio
    async def test_upload_uses_random_key(self, client, session, artifact_factory):
        session.request.return_value = make_response(200, {"Key": "crop-scans/x.jpg"})
        service = SupabaseStorageService(client, bucket="crop-scans")

        url = await service.upload(artifact_factory("my field photo.jpg"))

        method, request_url = session.request.call_args.args
        key = request_url.rsplit("/", 1)[-1]
        assert method == "POST"
        assert request_url.startswith(f"{BASE_URL}/storage/v1/object/crop-scans/")
        assert key.endswith(".jpg")
        assert "field" not in key
        assert session.request.call_args.kwargs["data"] == b"\xff\xd8fake"
        assert session.request.call_args.kwargs["headers"]["Content-Type"] == "image/jpeg"
        assert url == f"{BASE_URL}/storage/v1/object/public/crop-scans/{key}"

    @pytest.mark.asyncio
    async def test_upload_error_message_is_verbatim(self, client, session, artifact_factory):
        session.request.return_value = make_response(
            413, {"message": "The object exceeded the maximum allowed size"}
        )
        service = SupabaseStorageService(client)

        with pytest.raises(UploadError, match="^The object exceeded the maximum allowed size$"):
            await service.upload(artifact_factory("leaf.jpg"))

    @pytest.mark.asyncio
    async def test_upload_connection_error(self, client, session, artifact_factory):
        session.request.side_effect = requests.ConnectionError("connection refused")
        service = SupabaseStorageService(client)

        with pytest.raises(UploadError, match="connection refused"):
            await service.upload(artifact_factory("leaf.jpg"))


@pytest.mark.unit
class TestDetectionService:
    """Test suite for SupabaseDetectionService."""

    @pytest.mark.asyncio
    async def test_submit_scan(self, client, session):
        session.request.return_value = make_response(
            200, {"reportId": "r-42", "detectionsCount": 3, "detections": [{}, {}, {}]}
        )
        service = SupabaseDetectionService(client, function_name="detect-pest")

        result = await service.submit_scan("https://img.test/a.jpg", ScanType.DEEP_SCAN)

        assert result.report_id == "r-42"
        assert result.pest_count == 3
        _, url = session.request.call_args.args
        assert url == f"{BASE_URL}/functions/v1/detect-pest"
        assert session.request.call_args.kwargs["json"] == {
            "imageUrl": "https://img.test/a.jpg",
            "scanType": "drone_flight",
        }

    @pytest.mark.asyncio
    async def test_backend_error_is_propagated(self, client, session):
        session.request.return_value = make_response(500, {"error": "Model timed out"})
        service = SupabaseDetectionService(client)

        with pytest.raises(DetectionError, match="Model timed out"):
            await service.submit_scan("https://img.test/a.jpg", ScanType.QUICK_CHECK)

    @pytest.mark.asyncio
    async def test_error_in_successful_body(self, client, session):
        session.request.return_value = make_response(200, {"error": "Image unreadable"})
        service = SupabaseDetectionService(client)

        with pytest.raises(DetectionError, match="Image unreadable"):
            await service.submit_scan("https://img.test/a.jpg", ScanType.QUICK_CHECK)

    @pytest.mark.asyncio
    async def test_missing_report_id(self, client, session):
        session.request.return_value = make_response(200, {"detectionsCount": 0})
        service = SupabaseDetectionService(client)

        with pytest.raises(DetectionError):
            await service.submit_scan("https://img.test/a.jpg", ScanType.QUICK_CHECK)


@pytest.mark.unit
class TestAlertService:
    """Test suite for SupabaseAlertService."""

    @pytest.mark.asyncio
    async def test_high_infestation_creates_critical_alert(self, client, session):
        session.request.side_effect = [
            make_response(200, {"infestation_level": "HIGH", "farm_id": "farm-1"}),
            make_response(201),
        ]
        service = SupabaseAlertService(client)

        outcome = await service.maybe_raise_alert("r-1", ScanType.CONTINUOUS_MONITORING)

        assert outcome.alert_created is True
        assert outcome.severity == AlertSeverity.CRITICAL
        assert outcome.sms_triggered is True

        lookup, insert = session.request.call_args_list
        assert lookup.kwargs["params"] == {
            "id": "eq.r-1",
            "select": "infestation_level,farm_id",
        }
        assert insert.args[1] == f"{BASE_URL}/rest/v1/alerts"
        assert insert.kwargs["json"] == {
            "farm_id": "farm-1",
            "alert_type": "Pest Detection Alert",
            "severity": "critical",
            "message": (
                "A HIGH infestation level was found in your recent Live Scan. "
                "Check report for details."
            ),
            "type": "pest",
            "priority": 1,
            "is_read": False,
        }

    @pytest.mark.asyncio
    async def test_medium_infestation_creates_high_alert(self, client, session):
        session.request.side_effect = [
            make_response(200, {"infestation_level": "MEDIUM", "farm_id": "farm-2"}),
            make_response(201),
        ]
        service = SupabaseAlertService(client)

        outcome = await service.maybe_raise_alert("r-2", ScanType.QUICK_CHECK)

        assert outcome.alert_created is True
        assert outcome.severity == AlertSeverity.HIGH
        assert outcome.sms_triggered is False

    @pytest.mark.asyncio
    async def test_low_infestation_creates_nothing(self, client, session):
        session.request.return_value = make_response(
            200, {"infestation_level": "LOW", "farm_id": "farm-3"}
        )
        service = SupabaseAlertService(client)

        outcome = await service.maybe_raise_alert("r-3", ScanType.QUICK_CHECK)

        assert outcome.alert_created is False
        assert session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_lookup_failure_is_swallowed(self, client, session):
        session.request.side_effect = requests.ConnectionError("offline")
        service = SupabaseAlertService(client)

        outcome = await service.maybe_raise_alert("r-4", ScanType.QUICK_CHECK)

        assert outcome.alert_created is False
        assert outcome.report_id == "r-4"

    @pytest.mark.asyncio
    async def test_insert_failure_is_swallowed(self, client, session):
        session.request.side_effect = [
            make_response(200, {"infestation_level": "HIGH", "farm_id": "farm-5"}),
            make_response(403, {"message": "permission denied"}),
        ]
        service = SupabaseAlertService(client)

        outcome = await service.maybe_raise_alert("r-5", ScanType.QUICK_CHECK)

        assert outcome.alert_created is False
        assert outcome.sms_triggered is False

    def test_alert_message_labels(self):
        assert build_alert_message(ReportInfestationLevel.MEDIUM, ScanType.DEEP_SCAN) == (
            "A MEDIUM infestation level was found in your recent Drone Scan. "
            "Check report for details."
        )
