"""
LabelDesk Backend: Label Service (Request Handling Logic)
===========================================================

What:  The read and write operations behind /api/labels.
How:   Validates input, enforces the one-owner-per-image convention, and
       translates store failures into the API's error messages.
Who:   Called by the route handlers in routes/labels.py.

Write flow (POST /api/labels):
    ┌────────────┐    ┌──────────────────────────────┐    ┌──────────────┐
    │  Validate  │───▶│  Conditional upsert          │───▶│  Record      │
    │  (400)     │    │  (insert, or update if the   │    │  (200)       │
    └────────────┘    │   stored owner matches)      │    └──────────────┘
                      └──────────────┬───────────────┘
                                     │ no row written
                                     ▼
                              OwnershipConflict (403)

Ownership check:
    The owner test and the write are one database statement
    (LabelStore.upsert with require_owner=True). A second writer cannot slip
    in between a "who owns this?" read and the write, so two annotators racing
    to claim the same fresh image get exactly one 200 and one 403.

    modifiedBy is a free-text name chosen by the client. The check stops
    accidental overwrites between differently-named annotators; anyone who
    sends the same name is treated as the owner.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from labeldesk.exceptions import (
    OwnershipConflictError,
    StorageUnavailableError,
    ValidationError,
)
from labeldesk.schemas.label import LabelRecordOut, LabelWriteRequest
from labeldesk.services.label_store import LabelStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_write(request: LabelWriteRequest) -> None:
    """
    Enforce the required-field rule for writes.

    imageIndex is checked for truthiness, so an imageIndex of 0 counts as
    missing and is rejected like an absent one. Index 0 is therefore never a
    valid key.

    Raises:
        ValidationError: imageIndex falsy or modifiedBy missing/empty
    """
    missing = []
    if not request.image_index:
        missing.append("imageIndex")
    if not request.modified_by:
        missing.append("modifiedBy")
    if missing:
        raise ValidationError(missing=missing)


class LabelService:
    """
    Stateless request logic composed over a LabelStore.

    Error Handling Strategy:
        ValidationError and OwnershipConflictError propagate unchanged.
        Everything else raised by the store (StorageUnavailableError or an
        unexpected exception) is logged and re-raised as a
        StorageUnavailableError carrying the operation's public message.
    """

    def __init__(self, store: LabelStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    async def list_labels(self) -> List[LabelRecordOut]:
        """Return every Label Record (GET /api/labels)."""
        try:
            records = await self.store.list_all()
        except Exception as e:
            logger.error("Error fetching labels: %s", e, exc_info=True)
            raise StorageUnavailableError(
                message="Failed to fetch labels",
                context={"error_type": type(e).__name__},
            ) from e

        return [LabelRecordOut.from_record(record) for record in records]

    async def save_label(self, request: LabelWriteRequest) -> LabelRecordOut:
        """
        Create or update the label of one image (POST /api/labels).

        Returns:
            The record as stored after this write

        Raises:
            ValidationError: required fields missing (→ 400)
            OwnershipConflictError: image labeled under another name (→ 403)
            StorageUnavailableError: store failure (→ 500)
        """
        validate_write(request)

        try:
            record = await self.store.upsert(
                image_index=request.image_index,
                label=request.label or "",
                notes=request.notes or "",
                modified_by=request.modified_by,
                last_modified=self._clock(),
                require_owner=True,
            )
            if record is None:
                raise OwnershipConflictError(
                    image_index=request.image_index,
                    context={
                        "owner": await self._current_owner(request.image_index),
                        "attempted_by": request.modified_by,
                    },
                )
        except (ValidationError, OwnershipConflictError):
            raise
        except Exception as e:
            logger.error("Error saving label %s: %s", request.image_index, e, exc_info=True)
            raise StorageUnavailableError(
                message="Failed to save data",
                context={
                    "image_index": request.image_index,
                    "error_type": type(e).__name__,
                },
            ) from e

        logger.info(
            "Label for image %d saved by %s", record.image_index, record.modified_by
        )
        return LabelRecordOut.from_record(record)

    async def _current_owner(self, image_index: int) -> Optional[str]:
        """Owner name for the conflict log; a failed lookup yields None."""
        try:
            existing = await self.store.find_by_index(image_index)
        except Exception as e:
            logger.warning("Owner lookup for image %d failed: %s", image_index, e)
            return None
        return existing.modified_by if existing else None
