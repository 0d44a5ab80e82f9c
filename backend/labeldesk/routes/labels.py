"""
LabelDesk Backend: Label Route Handlers
=========================================

What:  GET /api/labels (list every label) and POST /api/labels (create or
       update the label of one image).
How:   Delegates to the LabelService stored on app.state by create_app().
Who:   Called by the annotation frontend.

Status codes:
    GET  → 200 JSON array | 500 {"error": "Failed to fetch labels"}
    POST → 200 {"success": true, "data": {...}}
           400 missing imageIndex/modifiedBy or malformed body
           403 image already labeled under another modifiedBy
           500 {"error": "Failed to save data"}
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from labeldesk.schemas.label import (
    ErrorResponse,
    LabelRecordOut,
    LabelWriteRequest,
    LabelWriteResponse,
)
from labeldesk.services.label_service import LabelService

router = APIRouter(prefix="/api", tags=["Labels"])


def get_label_service(request: Request) -> LabelService:
    """Retrieve the LabelService wired into the app by create_app()."""
    return request.app.state.label_service


@router.get(
    "/labels",
    response_model=List[LabelRecordOut],
    responses={500: {"description": "Store failure", "model": ErrorResponse}},
    summary="List every image label",
)
async def list_labels(
    service: LabelService = Depends(get_label_service),
) -> List[LabelRecordOut]:
    """Return every stored Label Record, in no guaranteed order."""
    return await service.list_labels()


@router.post(
    "/labels",
    response_model=LabelWriteResponse,
    responses={
        400: {"description": "imageIndex or modifiedBy missing", "model": ErrorResponse},
        403: {"description": "Labeled by another user", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Create or update the label of one image",
    description=(
        "Upserts the label keyed by imageIndex. The first writer of an image "
        "becomes its owner; later writes are accepted only with the same "
        "modifiedBy. modifiedBy is an unverified name, not a credential."
    ),
)
async def save_label(
    body: Optional[LabelWriteRequest] = None,
    service: LabelService = Depends(get_label_service),
) -> LabelWriteResponse:
    # No body counts as an empty object and fails the required-field rule
    record = await service.save_label(body or LabelWriteRequest())
    return LabelWriteResponse(success=True, data=record)
