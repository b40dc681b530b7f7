"""
Uploads component - presigned upload slots.
"""

from .component import run_issue_upload, validate_content_type, validate_file_name
from .models import IssueUploadInput, IssueUploadOutput, UploadTicket, UploadValidationError
from .ports import TimePort, UploadPresignerPort

__all__ = [
    "run_issue_upload",
    "validate_content_type",
    "validate_file_name",
    "IssueUploadInput",
    "IssueUploadOutput",
    "UploadTicket",
    "UploadValidationError",
    "TimePort",
    "UploadPresignerPort",
]
