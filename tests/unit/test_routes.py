"""
Tests for API Routes.

Tests the Flask HTTP endpoints.
"""

from unittest.mock import MagicMock

import pytest

from approval_resender.core.exceptions import (
    ConfigurationError,
    GmailError,
    MissingBranchError,
    RecipientNotFoundError,
    RecordNotFoundError,
    SchemaMismatchError,
    SheetsError,
)
from approval_resender.services import ResendResult
from fakes import FORM_RANGE, RAB_HEADER, SPK_HEADER, SPK_RANGE, rab_row, spk_row


SENT = ResendResult(
    message="Email berhasil dikirim.",
    sent=True,
    status="Menunggu Persetujuan Koordinator",
    role="Koordinator",
    recipients=["coord1@x.com", "coord2@x.com"],
    message_ids=["msg-1"],
)


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_returns_healthy(self, client):
        """Health endpoint should return healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["service"] == "approval-resender"

    def test_root_is_health(self, client):
        assert client.get("/").get_json()["status"] == "healthy"

    def test_metrics_exposition(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.mimetype == "text/plain"
        text = response.get_data(as_text=True)
        assert "# TYPE http_requests_total counter" in text
        assert 'endpoint="api.health_check"' in text

    def test_cors_headers(self, client):
        response = client.get("/health", headers={"Origin": "https://sparta.test"})

        assert "Access-Control-Allow-Origin" in response.headers

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        assert len(client.get("/health").headers["X-Request-ID"]) == 8


class TestResendEmailEndpoint:
    """Tests for /api/resend-email."""

    @pytest.mark.parametrize("body", [
        {},
        {"ulok": "Z001-2506-0001"},
        {"lingkup": "Sipil"},
        {"ulok": "   ", "lingkup": "Sipil"},
        {"ulok": "Z001-2506-0001", "lingkup": None},
    ])
    def test_missing_fields_return_400(self, client, mock_container, body):
        """Should return 400 when ulok or lingkup is missing."""
        response = client.post("/api/resend-email", json=body)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Ulok dan Lingkup Pekerjaan harus diisi."
        mock_container.rab_service.resend.assert_not_called()

    def test_non_json_body_returns_400(self, client):
        response = client.post("/api/resend-email", data="ulok=1", content_type="text/plain")

        assert response.status_code == 400

    def test_values_are_trimmed(self, client, mock_container):
        mock_container.rab_service.resend.return_value = SENT

        client.post("/api/resend-email", json={"ulok": " Z001 ", "lingkup": " Sipil "})

        mock_container.rab_service.resend.assert_called_once_with("Z001", "Sipil")

    def test_numeric_ulok_is_accepted(self, client, mock_container):
        mock_container.rab_service.resend.return_value = SENT

        response = client.post("/api/resend-email", json={"ulok": 12345, "lingkup": "Sipil"})

        assert response.status_code == 200
        mock_container.rab_service.resend.assert_called_once_with("12345", "Sipil")

    def test_sent(self, client, mock_container):
        mock_container.rab_service.resend.return_value = SENT

        response = client.post(
            "/api/resend-email",
            json={"ulok": "Z001-2506-0001", "lingkup": "Sipil"},
        )

        assert response.status_code == 200
        assert response.get_json() == {
            "message": "Email berhasil dikirim.",
            "recipient": "coord1@x.com, coord2@x.com",
            "role": "Koordinator",
            "messageId": "msg-1",
        }

    def test_skipped_is_informational_200(self, client, mock_container):
        mock_container.rab_service.resend.return_value = ResendResult.skipped("Disetujui Sebagian")

        response = client.post("/api/resend-email", json={"ulok": "Z001", "lingkup": "Sipil"})

        assert response.status_code == 200
        assert response.get_json() == {
            "message": 'Email tidak dikirim. Status saat ini: "Disetujui Sebagian"',
        }

    @pytest.mark.parametrize("error,status", [
        (RecordNotFoundError("Data tidak ditemukan di form2."), 404),
        (RecipientNotFoundError("Sheet Cabang kosong."), 404),
        (MissingBranchError(5), 400),
    ])
    def test_business_errors(self, client, mock_container, error, status):
        mock_container.rab_service.resend.side_effect = error

        response = client.post("/api/resend-email", json={"ulok": "Z001", "lingkup": "Sipil"})

        assert response.status_code == status
        assert response.get_json()["error"] == error.message

    @pytest.mark.parametrize("error", [
        SheetsError("HTTP 503: backend error", 503),
        GmailError("HTTP 403: insufficient scopes", 403),
        ConfigurationError("spreadsheet_id", "Spreadsheet id for sheet form2 is not configured."),
        SchemaMismatchError("form2", ["Status"]),
        RuntimeError("boom"),
    ])
    def test_failures_return_500_with_details(self, client, mock_container, error):
        mock_container.rab_service.resend.side_effect = error

        response = client.post("/api/resend-email", json={"ulok": "Z001", "lingkup": "Sipil"})

        assert response.status_code == 500
        data = response.get_json()
        assert data["error"] == "Terjadi kesalahan internal server."
        assert data["details"] == str(error)

    @pytest.mark.parametrize("error,level,expected", [
        (MissingBranchError(5), "warning", {"row": 5}),
        (
            RecipientNotFoundError(
                "Tidak ada email.", titles=["BRANCH MANAGER"], branch="BANDUNG",
            ),
            "warning",
            {"titles": ["BRANCH MANAGER"], "branch": "BANDUNG"},
        ),
        (SchemaMismatchError("form2", ["Status"]), "error", {"sheet": "form2", "missing": ["Status"]}),
        (SheetsError("HTTP 503", 503), "error", {"service_name": "Sheets", "status_code": 503}),
    ])
    def test_error_details_are_logged(self, client, mock_container, monkeypatch, error, level, expected):
        route_logger = MagicMock()
        monkeypatch.setattr("approval_resender.api.routes.logger", route_logger)
        mock_container.rab_service.resend.side_effect = error

        client.post("/api/resend-email", json={"ulok": "Z001", "lingkup": "Sipil"})

        fields = getattr(route_logger, level).call_args.kwargs["extra"]["extra_fields"]
        assert fields["details"] == expected


class TestResendEmailSpkEndpoint:
    """Tests for /api/resend-email-spk."""

    def test_uses_spk_service(self, client, mock_container):
        mock_container.spk_service.resend.return_value = ResendResult(
            message="Email penolakan berhasil dikirim.",
            sent=True,
            role="Rejected",
            recipients=["submitter@x.com"],
            message_ids=["msg-9"],
            reason="Nilai terlalu tinggi",
        )

        response = client.post("/api/resend-email-spk", json={"ulok": "Z001", "lingkup": "Sipil"})

        assert response.status_code == 200
        assert response.get_json()["reason"] == "Nilai terlalu tinggi"
        mock_container.rab_service.resend.assert_not_called()

    def test_missing_fields(self, client):
        response = client.post("/api/resend-email-spk", json={"ulok": "Z001"})

        assert response.status_code == 400


class TestDebugEndpoint:
    """Tests for /api/debug/oauth-clients."""

    def test_report(self, client, mock_container):
        mock_container.diagnostics.report.return_value = {
            "doc": {
                "source": "env:DOC_GOOGLE_REFRESH_TOKEN",
                "tokenFileFound": False,
                "hasRefreshToken": True,
                "scopeInfo": {"ok": True, "message": "OK", "scopes": []},
            },
        }

        response = client.get("/api/debug/oauth-clients")

        assert response.status_code == 200
        assert response.get_json()["doc"]["source"] == "env:DOC_GOOGLE_REFRESH_TOKEN"

    def test_failure(self, client, mock_container):
        mock_container.diagnostics.report.side_effect = RuntimeError("executor down")

        response = client.get("/api/debug/oauth-clients")

        assert response.status_code == 500
        assert response.get_json() == {
            "error": "Gagal membaca status OAuth client.",
            "error_type": "internal_error",
            "details": "executor down",
        }


class TestWiredEndpoints:
    """End-to-end through Flask with real services over fake Google APIs."""

    def test_rab_final_approval(self, wired_client, sheets, gmail):
        sheets.ranges[FORM_RANGE] = [RAB_HEADER, rab_row({
            "Status": "Disetujui",
            "Pemberi Persetujuan Koordinator": "coord1@x.com",
            "Pemberi Persetujuan Manager": "manager@x.com",
        })]

        response = wired_client.post(
            "/api/resend-email",
            json={"ulok": "z001 2506 0001", "lingkup": "SIPIL"},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["role"] == "Final Approved"
        assert data["messageIds"] == ["msg-1", "msg-2"]
        assert len(gmail.sent) == 2

    def test_rab_no_recipients_is_404(self, wired_client, sheets, gmail):
        sheets.ranges[FORM_RANGE] = [RAB_HEADER, rab_row({"Cabang": "SURABAYA"})]

        response = wired_client.post(
            "/api/resend-email",
            json={"ulok": "Z001-2506-0001", "lingkup": "Sipil"},
        )

        assert response.status_code == 404
        assert gmail.sent == []

    def test_spk_rejection(self, wired_client, sheets):
        sheets.ranges[SPK_RANGE] = [SPK_HEADER, spk_row({"Status": "SPK Ditolak"})]

        response = wired_client.post(
            "/api/resend-email-spk",
            json={"ulok": "Z001-2506-0001", "lingkup": "Sipil"},
        )

        assert response.status_code == 200
        assert response.get_json()["role"] == "Rejected"

    def test_debug_report(self, wired_client):
        response = wired_client.get("/api/debug/oauth-clients")

        data = response.get_json()
        assert set(data) == {"doc", "sparta"}
        assert data["doc"]["source"] == "file:/etc/secrets/token_doc.json"
        assert data["doc"]["tokenFileFound"] is True
        assert data["sparta"]["scopeInfo"]["scopes"] == [
            "https://www.googleapis.com/auth/sparta",
        ]
