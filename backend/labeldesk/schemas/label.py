"""
LabelDesk Backend: Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the JSON contract of the API.
How:   FastAPI validates POST bodies against LabelWriteRequest and serializes
       responses through the response models (by alias, so the wire format
       is camelCase while Python code uses snake_case).

Wire format of a Label Record:
    {
        "imageIndex": 12,
        "label": "cat",
        "notes": "blurry, left edge",
        "modifiedBy": "alice",
        "lastModified": "2024-01-15T12:00:00Z"
    }
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Signed 64-bit range of labels.image_index
IMAGE_INDEX_MIN = -(2**63)
IMAGE_INDEX_MAX = 2**63 - 1


class LabelWriteRequest(BaseModel):
    """
    Body of POST /api/labels.

    Every field is optional at the schema level. The required-field rule
    (truthy imageIndex, non-empty modifiedBy) is a business rule enforced by
    LabelService so that a missing field yields the API's own 400 message
    rather than a schema error.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Bounded to the BIGINT key column so out-of-range values are a 400
    image_index: Optional[int] = Field(
        default=None,
        alias="imageIndex",
        ge=IMAGE_INDEX_MIN,
        le=IMAGE_INDEX_MAX,
    )
    label: Optional[str] = Field(default=None, description="Classification text")
    notes: Optional[str] = Field(default=None, description="Annotator commentary")
    modified_by: Optional[str] = Field(
        default=None,
        alias="modifiedBy",
        description="Annotator name; must match the current owner to update",
    )


class LabelRecordOut(BaseModel):
    """A stored Label Record as returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    image_index: int = Field(alias="imageIndex")
    label: str = Field(default="")
    notes: str = Field(default="")
    modified_by: str = Field(alias="modifiedBy")
    last_modified: datetime = Field(alias="lastModified")

    @field_validator("last_modified")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """SQLite hands back naive datetimes; every stored time is UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_record(cls, record: Any) -> "LabelRecordOut":
        return cls(
            image_index=record.image_index,
            label=record.label or "",
            notes=record.notes or "",
            modified_by=record.modified_by,
            last_modified=record.last_modified,
        )


class LabelWriteResponse(BaseModel):
    """Response of a successful POST /api/labels."""

    success: bool = Field(default=True)
    data: LabelRecordOut


class ErrorResponse(BaseModel):
    """
    Error body shared by every non-2xx response.

    Fields:
        error: Human-readable description, safe to show to annotators
        details: Optional field-level information (request validation only)
        request_id: Correlation ID for finding this request in server logs
    """

    error: str = Field(description="Human-readable error description")
    details: Optional[List[Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
