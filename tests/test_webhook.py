"""Tests for the GitHub webhook endpoint and signature checks."""

import hashlib
import hmac
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.core.exceptions import SignatureVerificationError
from src.core.security import require_github_signature, verify_github_signature
from src.main import app

SECRET = "s3cret"


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture
def client():
    return TestClient(app)


class TestSignature:
    """Tests for webhook signature verification."""

    @patch("src.core.security.settings")
    def test_valid_signature(self, mock_settings):
        """Accept a body signed with the configured secret."""
        mock_settings.github_webhook_secret = SECRET

        assert verify_github_signature(b"{}", _sign(b"{}")) is True

    @patch("src.core.security.settings")
    def test_invalid_signature(self, mock_settings):
        """Reject a body signed with another secret."""
        mock_settings.github_webhook_secret = SECRET

        assert verify_github_signature(b"{}", _sign(b"{}", "other")) is False
        with pytest.raises(SignatureVerificationError):
            require_github_signature(b"{}", _sign(b"{}", "other"))

    @patch("src.core.security.settings")
    def test_no_secret_configured(self, mock_settings):
        """Skip verification when no secret is configured."""
        mock_settings.github_webhook_secret = None

        assert verify_github_signature(b"{}", "") is True


class TestWebhook:
    """Tests for POST /api/webhook/github."""

    def _post(self, client, event, payload, signature=None):
        body = json.dumps(payload).encode()
        return client.post(
            "/api/webhook/github",
            content=body,
            headers={
                "X-GitHub-Event": event,
                "X-Hub-Signature-256": signature or _sign(body),
                "Content-Type": "application/json",
            },
        )

    @patch("src.core.security.settings")
    def test_ping(self, mock_settings, client):
        """Answer ping events."""
        mock_settings.github_webhook_secret = SECRET

        response = self._post(client, "ping", {"zen": "Keep it logically awesome."})

        assert response.status_code == 200
        assert response.json()["zen"] == "Keep it logically awesome."

    @patch("src.core.security.settings")
    def test_bad_signature_rejected(self, mock_settings, client):
        """Reject deliveries with a wrong signature."""
        mock_settings.github_webhook_secret = SECRET

        response = self._post(client, "ping", {"zen": "x"}, signature="sha256=deadbeef")

        assert response.status_code == 401
        assert "signature" in response.json()["error"]

    @patch("src.services.github.service.run_review")
    @patch("src.core.security.settings")
    def test_pull_request_opened(self, mock_settings, mock_run_review, client):
        """Opened pull requests start a background review."""
        mock_settings.github_webhook_secret = SECRET
        payload = {
            "action": "opened",
            "pull_request": {"number": 7},
            "repository": {"name": "erp", "owner": {"login": "acme"}},
        }

        response = self._post(client, "pull_request", payload)

        assert response.status_code == 200
        assert response.json()["pr"] == "acme/erp#7"
        mock_run_review.assert_called_once_with("acme", "erp", 7)

    @patch("src.services.github.service.run_review")
    @patch("src.core.security.settings")
    def test_pull_request_closed_ignored(self, mock_settings, mock_run_review, client):
        """Closed pull requests are not reviewed."""
        mock_settings.github_webhook_secret = SECRET
        payload = {
            "action": "closed",
            "pull_request": {"number": 7},
            "repository": {"name": "erp", "owner": {"login": "acme"}},
        }

        response = self._post(client, "pull_request", payload)

        assert response.status_code == 200
        assert "not reviewed" in response.json()["message"]
        mock_run_review.assert_not_called()

    def test_health(self, client):
        """Health endpoint reports the service name."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["service"] == "al-pr-reviewer"

    def test_root_reports_review_settings(self, client):
        """Root endpoint exposes the active review settings."""
        response = client.get("/")

        assert response.status_code == 200
        assert set(response.json()["review"]) == {
            "model",
            "max_comments",
            "context_radius",
            "include_context_lines",
        }
