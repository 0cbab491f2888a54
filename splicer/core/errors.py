# File: splicer/core/errors.py

from typing import Optional


class SplicerError(Exception):
    """
    Base for every failure a Job can end with.

    `str(exc)` carries the internal cause for logs; `public_message` is the
    generic text returned to the requester.
    """
    status_code: int = 500
    public_message: str = "Processing failed"

    def __init__(self, message: str, public_message: Optional[str] = None):
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(SplicerError):
    status_code = 400
    public_message = "Invalid trim request"

    def __init__(self, message: str):
        # Validation messages are safe to show as-is
        super().__init__(message, public_message=message)


class MalformedTimecode(ValidationError):
    def __init__(self, text, index: Optional[int] = None):
        self.text = text
        self.index = index
        where = f" in segment at index {index}" if index is not None else ""
        super().__init__(f"Malformed timecode{where}: {text!r} (expected HH:MM:SS)")


class SourceUnavailable(SplicerError):
    status_code = 400
    public_message = "Source video is unavailable"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class WorkspaceAllocationError(SplicerError):
    status_code = 500
    public_message = "Internal error"


class SegmentExtractionFailed(SplicerError):
    status_code = 500

    def __init__(self, index: int, cause: str):
        self.index = index
        self.cause = cause
        super().__init__(
            f"Segment {index} extraction failed: {cause}",
            public_message=f"Failed to extract segment at index {index}",
        )


class ConcatenationFailed(SplicerError):
    status_code = 500
    public_message = "Failed to join segments"

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Concatenation failed: {cause}")


class DeliveryUploadFailed(SplicerError):
    status_code = 502
    public_message = "Failed to store the trimmed video"
