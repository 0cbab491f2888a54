from typing import Any, Optional

from pydantic import BaseModel


class UrlTrimBody(BaseModel):
    url: str
    # Validated by the pipeline so the client gets the same messages as /api/trim
    segments: Optional[Any] = None


class UrlDeliveryResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str
