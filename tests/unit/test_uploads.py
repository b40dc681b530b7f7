"""
Upload slot issuing: validation against the rules allowlists and temp key layout.
"""

from __future__ import annotations

from uuid import UUID

import pytest

from folio.components.assets import is_temporary_key, normalize
from folio.components.uploads import (
    IssueUploadInput,
    run_issue_upload,
    validate_content_type,
    validate_file_name,
)
from folio.core.errors import StorageOperationFailed
from folio.core.ports.storage import StorageError
from folio.rules.models import Rules


class RecordingPresigner:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, int]] = []

    def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        self.calls.append((key, content_type, expires_in))
        return f"https://upload.example.com/{key}?sig=abc"


@pytest.fixture
def presigner() -> RecordingPresigner:
    return RecordingPresigner()


class TestRunIssueUpload:
    def test_issues_ticket(self, rules: Rules, clock, owner_id: UUID, presigner) -> None:
        inp = IssueUploadInput(owner_user_id=owner_id, file_name="my photo.JPG", content_type="image/jpeg")

        result = run_issue_upload(inp, presigner=presigner, rules=rules, time=clock)

        assert result.success is True
        ticket = result.ticket
        assert ticket is not None
        epoch_ms = int(clock.now_utc().timestamp() * 1000)
        assert ticket.key == f"temp/{owner_id}/{epoch_ms}-my_photo.JPG"
        assert is_temporary_key(ticket.key, owner_id, rules.storage.temp_prefix)
        assert ticket.canonical_url == f"{rules.storage.public_base_url}/{ticket.key}"
        assert ticket.expires_in == rules.storage.signed_url_ttl_seconds
        assert presigner.calls == [(ticket.key, "image/jpeg", rules.storage.signed_url_ttl_seconds)]

    def test_upload_url_and_canonical_url_share_key(
        self, rules: Rules, clock, owner_id: UUID, presigner
    ) -> None:
        inp = IssueUploadInput(owner_user_id=owner_id, file_name="a.png", content_type="image/png")

        ticket = run_issue_upload(inp, presigner=presigner, rules=rules, time=clock).ticket

        assert normalize(ticket.upload_url) == normalize(ticket.canonical_url) == ticket.key

    def test_signing_failure_raises_storage_error(self, rules: Rules, clock, owner_id: UUID) -> None:
        class BrokenPresigner:
            def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
                raise StorageError("endpoint unreachable")

        inp = IssueUploadInput(owner_user_id=owner_id, file_name="a.png", content_type="image/png")

        with pytest.raises(StorageOperationFailed) as exc:
            run_issue_upload(inp, presigner=BrokenPresigner(), rules=rules, time=clock)

        assert exc.value.operation == "presign"
        assert exc.value.key.startswith(f"temp/{owner_id}/")

    def test_rejects_mime_type(self, rules: Rules, clock, owner_id: UUID, presigner) -> None:
        inp = IssueUploadInput(owner_user_id=owner_id, file_name="a.png", content_type="text/html")

        result = run_issue_upload(inp, presigner=presigner, rules=rules, time=clock)

        assert result.success is False
        assert result.ticket is None
        assert [e.code for e in result.errors] == ["invalid_mime_type"]
        assert presigner.calls == []

    def test_rejects_extension(self, rules: Rules, clock, owner_id: UUID, presigner) -> None:
        inp = IssueUploadInput(owner_user_id=owner_id, file_name="run.exe", content_type="image/png")

        result = run_issue_upload(inp, presigner=presigner, rules=rules, time=clock)

        assert [e.code for e in result.errors] == ["invalid_extension"]

    def test_collects_all_errors(self, rules: Rules, clock, owner_id: UUID, presigner) -> None:
        inp = IssueUploadInput(
            owner_user_id=owner_id, file_name="x" * 300 + ".svg", content_type="image/svg+xml"
        )

        result = run_issue_upload(inp, presigner=presigner, rules=rules, time=clock)

        codes = {e.code for e in result.errors}
        assert codes == {"file_name_too_long", "invalid_extension", "invalid_mime_type"}


class TestValidators:
    def test_content_type_case_insensitive(self) -> None:
        assert validate_content_type("IMAGE/PNG", ["image/png"]) == []

    def test_empty_file_name(self) -> None:
        errors = validate_file_name("  ", [".png"], 255)
        assert [e.code for e in errors] == ["file_name_required"]

    def test_extension_case_insensitive(self) -> None:
        assert validate_file_name("A.PNG", [".png"], 255) == []
