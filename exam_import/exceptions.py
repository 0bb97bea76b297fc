class ExamImportError(Exception):
    """Base class for import failures."""


class DecodeError(ExamImportError):
    """Raised when a structured document cannot be decoded into an Exam."""


class UnsupportedFormatError(ExamImportError):
    """Raised when no decoder handles the given media type."""

    def __init__(self, media_type: str):
        super().__init__(f"Unsupported file type: {media_type}")
        self.media_type = media_type


class GatewayError(ExamImportError):
    """Raised when the validation/persistence service fails."""
