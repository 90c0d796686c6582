from typing import List, Optional


SERVICE_FAILURE_MESSAGE = "Failed to get a response from the AI. Please try again."
FORM_INCOMPLETE_MESSAGE = (
    "Please fill all required fields, describe your symptoms or upload a report, "
    "and select at least one treatment type."
)
INVALID_FILES_MESSAGE = "Some files were invalid. Only JPG, PNG, and PDF files under 10MB are accepted."


class PrescriptionError(Exception):
    """Base class for every failure surfaced to the intake form."""


class FormValidationError(PrescriptionError):
    def __init__(self, message: str = FORM_INCOMPLETE_MESSAGE, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class AttachmentRejected(PrescriptionError):
    """One or more uploads were dropped (wrong type or too large)."""

    def __init__(self, rejected: List[str], message: str = INVALID_FILES_MESSAGE):
        super().__init__(message)
        self.rejected = rejected


class EncodingError(PrescriptionError):
    pass


class ServiceError(PrescriptionError):
    def __init__(self, message: str = SERVICE_FAILURE_MESSAGE):
        super().__init__(message)


class ParseError(ServiceError):
    """Reply was not well-formed JSON or broke the response contract."""

    def __init__(self, detail: str, raw_text: str = ""):
        super().__init__(SERVICE_FAILURE_MESSAGE)
        self.detail = detail
        self.raw_text = raw_text
