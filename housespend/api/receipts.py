"""Receipt API endpoints."""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from housespend.api.dependencies import get_current_user, get_receipt_service
from housespend.models.user import User
from housespend.schemas.receipt import (
    ReceiptAnalysisResponse,
    ReceiptDetailResponse,
    ReceiptResponse,
)
from housespend.services.receipt_service import ReceiptService

router = APIRouter(prefix="/api/v1/receipts", tags=["receipts"])

WARNINGS_HEADER = "X-Analysis-Warnings"


@router.post("/upload", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
async def upload_receipt(
    file: Annotated[UploadFile, File(description="Receipt image (JPEG, PNG, GIF, WebP) or PDF")],
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ReceiptService, Depends(get_receipt_service)],
):
    """Upload a receipt. Analysis is requested separately.

    Note: This endpoint must remain async because UploadFile.read() is async.
    """
    data = await file.read()
    receipt = service.upload_receipt(current_user.id, data, file.content_type)
    return ReceiptResponse.model_validate(receipt)


@router.get("", response_model=list[ReceiptResponse])
def list_receipts(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ReceiptService, Depends(get_receipt_service)],
):
    """List the user's receipts, newest first."""
    return [
        ReceiptResponse.model_validate(receipt).model_copy(update={"line_item_count": count})
        for receipt, count in service.list_receipts(current_user.id)
    ]


@router.get("/{receipt_id}", response_model=ReceiptDetailResponse)
def get_receipt(
    receipt_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ReceiptService, Depends(get_receipt_service)],
):
    """Get a receipt with its line items."""
    return service.get_receipt(receipt_id, current_user.id)


@router.get("/{receipt_id}/image")
def get_receipt_image(
    receipt_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ReceiptService, Depends(get_receipt_service)],
):
    """Download the stored receipt file."""
    data, content_type = service.get_receipt_image(receipt_id, current_user.id)
    return Response(content=data, media_type=content_type)


@router.post("/{receipt_id}/analyze", response_model=ReceiptAnalysisResponse)
async def analyze_receipt(
    receipt_id: int,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ReceiptService, Depends(get_receipt_service)],
):
    """Analyze a receipt with the AI provider and update stock from its items.

    Items the provider returned but that failed validation are reported in
    ``warnings`` and in the X-Analysis-Warnings header.
    """
    outcome = await service.analyze_receipt(receipt_id, current_user.id)

    if outcome.warnings:
        response.headers[WARNINGS_HEADER] = quote("|".join(outcome.warnings))

    detail = ReceiptDetailResponse.model_validate(outcome.receipt)
    return ReceiptAnalysisResponse(
        **detail.model_dump(),
        warnings=outcome.warnings,
        stock_updated=outcome.reconciliation.updated,
        stock_failed=outcome.reconciliation.failed,
    )
