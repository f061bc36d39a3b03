"""Unit tests for ErrorResponseService."""

from src.core.exceptions import ErrorSeverity, StorageError, UpstreamUnavailableError
from src.core.services.error_response_service import ErrorResponseService
from src.modules.shared.exceptions import (
    AdminChannelNotConfiguredError,
    InviteAlreadyProcessedError,
    InviteIssuanceError,
)


class TestFormatError:
    def setup_method(self):
        self.service = ErrorResponseService()

    def test_domain_error_uses_own_title_and_help(self):
        response = self.service.format_error(AdminChannelNotConfiguredError())

        assert response["title"] == "Invites Unavailable"
        assert response["description"]
        assert "/admin set" in response["help_text"]

    def test_domain_error_without_help(self):
        response = self.service.format_error(InviteAlreadyProcessedError(42))

        assert response["title"] == "Already Processed"
        assert response["help_text"] is None

    def test_issuance_error_suggests_retry(self):
        response = self.service.format_error(InviteIssuanceError(42, "Wizarr: timed out"))

        assert "Approve again" in response["help_text"]

    def test_infrastructure_error_does_not_leak(self):
        response = self.service.format_error(StorageError("save admin", OSError("/data/admin.json: denied")))

        assert response["title"] == "Service Problem"
        assert "/data" not in response["description"]
        assert response["help_text"].startswith("Settings could not be saved")

    def test_upstream_error_generic_help(self):
        response = self.service.format_error(UpstreamUnavailableError("Wizarr", "timed out"))

        assert response["help_text"] == "Please try again in a moment."
        assert response["severity"] is ErrorSeverity.WARNING

    def test_unexpected_error_fallback(self):
        response = self.service.format_error(KeyError("boom"))

        assert response["title"] == "Something Went Wrong"
        assert response["severity"] is ErrorSeverity.ERROR
