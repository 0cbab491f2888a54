# File: splicer/core/common/enums.py

from enum import Enum, unique


@unique
class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@unique
class SourceKind(str, Enum):
    UPLOAD = "upload"
    URL = "url"


@unique
class ExtractionMode(str, Enum):
    STREAM_COPY = "copy"
    FRAME_ACCURATE = "accurate"


@unique
class DeliveryMode(str, Enum):
    STREAM = "stream"
    S3 = "s3"


@unique
class OutputContainer(str, Enum):
    MP4 = "mp4"
    WEBM = "webm"
    MKV = "mkv"
    MOV = "mov"

    @property
    def media_type(self) -> str:
        return {
            OutputContainer.MP4: "video/mp4",
            OutputContainer.WEBM: "video/webm",
            OutputContainer.MKV: "video/x-matroska",
            OutputContainer.MOV: "video/quicktime",
        }[self]

    @property
    def suffix(self) -> str:
        return f".{self.value}"
