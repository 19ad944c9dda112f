"""Receipt upload, storage and the analysis pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from housespend.config import Settings, get_settings
from housespend.models.enums import ReceiptStatus
from housespend.models.receipt import LineItem, Receipt
from housespend.schemas.analysis import ReceiptAnalysis
from housespend.services.analysis_client import ReceiptAnalyzer
from housespend.services.category_service import get_categories_by_name
from housespend.services.errors import (
    AnalysisInProgressError,
    AnalysisProviderError,
    InvalidInputError,
    MissingApiKeyError,
    NotFoundError,
    PreconditionFailedError,
    UnprocessableAnalysisError,
)
from housespend.services.receipt_validation import (
    MAX_MONEY,
    ValidatedLineItem,
    fits,
    round_money,
    validate_line_items,
)
from housespend.services.stock_service import ReconciliationResult, StockService

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
}

STORE_NAME_MAX_LENGTH = 255


@dataclass
class AnalysisOutcome:
    """A successfully analyzed receipt and what happened along the way."""

    receipt: Receipt
    warnings: list[str] = field(default_factory=list)
    reconciliation: ReconciliationResult = field(default_factory=ReconciliationResult)


class ReceiptService:
    """Service for receipts and their analysis."""

    def __init__(
        self,
        db: Session,
        analyzer: ReceiptAnalyzer | None = None,
        stock_service: StockService | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.analyzer = analyzer
        self.settings = settings or get_settings()
        self.stock_service = stock_service or StockService(db, self.settings)

    def upload_receipt(self, user_id: int, data: bytes, content_type: str | None) -> Receipt:
        """Store an uploaded receipt file.

        When enabled, a background job is queued to read the store name so
        the receipt list shows something useful before the full analysis.
        """
        content_type = (content_type or "").split(";")[0].strip().lower()
        if not data:
            raise InvalidInputError("The uploaded file is empty")
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidInputError(
                f"Unsupported file type '{content_type or 'unknown'}'. "
                "Upload a JPEG, PNG, GIF, WebP image or a PDF."
            )
        if len(data) > self.settings.max_upload_bytes:
            raise InvalidInputError(
                f"File is too large (max {self.settings.max_upload_bytes // (1024 * 1024)} MB)"
            )

        receipt = Receipt(
            user_id=user_id,
            image_data=data,
            image_content_type=content_type,
            is_analyzed=False,
            status=ReceiptStatus.UPLOADED.value,
        )
        self.db.add(receipt)
        self.db.commit()
        self.db.refresh(receipt)
        logger.info(f"Stored receipt {receipt.id} ({len(data)} bytes, {content_type})")

        if self.settings.store_name_prefill_enabled:
            self._queue_store_name_prefill(receipt.id)

        return receipt

    def _queue_store_name_prefill(self, receipt_id: int) -> None:
        # Imported here to keep the Celery app out of the service import graph
        from housespend.tasks.store_name_prefill import prefill_store_name

        try:
            prefill_store_name.delay(receipt_id)
        except Exception as e:
            logger.warning(f"Could not queue store name pre-fill for receipt {receipt_id}: {e}")

    def list_receipts(self, user_id: int) -> list[tuple[Receipt, int]]:
        """List the user's receipts, newest first, with their line item counts."""
        counts = (
            self.db.query(LineItem.receipt_id, func.count(LineItem.id).label("item_count"))
            .group_by(LineItem.receipt_id)
            .subquery()
        )
        rows = (
            self.db.query(Receipt, func.coalesce(counts.c.item_count, 0))
            .outerjoin(counts, counts.c.receipt_id == Receipt.id)
            .filter(Receipt.user_id == user_id)
            .order_by(Receipt.created_at.desc(), Receipt.id.desc())
            .all()
        )
        return [(receipt, int(count)) for receipt, count in rows]

    def get_receipt(self, receipt_id: int, user_id: int) -> Receipt:
        """Get a receipt that belongs to the user."""
        receipt = (
            self.db.query(Receipt)
            .filter(Receipt.id == receipt_id, Receipt.user_id == user_id)
            .first()
        )
        if not receipt:
            raise NotFoundError("Receipt not found")
        return receipt

    def get_receipt_image(self, receipt_id: int, user_id: int) -> tuple[bytes, str]:
        """Return the stored file and its content type."""
        receipt = self.get_receipt(receipt_id, user_id)
        if not receipt.image_data:
            raise NotFoundError("Receipt has no image")
        return receipt.image_data, receipt.image_content_type or "application/octet-stream"

    async def analyze_receipt(self, receipt_id: int, user_id: int) -> AnalysisOutcome:
        """Analyze a receipt, replace its line items and update stock.

        Steps:
        1. Claim the receipt so concurrent analyses of it are rejected
        2. Ask the model for store, date, total and line items
        3. Drop invalid items, keeping a warning for each
        4. Persist the receipt and its items in one transaction
        5. Record each item in the stock ledger

        Raises:
            NotFoundError: Receipt does not exist for this user
            PreconditionFailedError: Receipt has no stored file
            AnalysisInProgressError: Another analysis holds the claim
            MissingApiKeyError: No API key configured
            AnalysisProviderError: The model call failed
            UnprocessableAnalysisError: No line item survived validation
        """
        receipt = self.get_receipt(receipt_id, user_id)
        if not receipt.image_data:
            raise PreconditionFailedError("Receipt has no image to analyze")

        self._claim_for_analysis(receipt)

        try:
            analysis = await self.analyzer.analyze(
                receipt.image_data, receipt.image_content_type or "image/jpeg"
            )
        except (AnalysisProviderError, MissingApiKeyError) as e:
            logger.warning(f"Analysis of receipt {receipt.id} failed: {e.message}")
            self._release_claim(receipt, error=e.message)
            raise
        except Exception:
            logger.exception(f"Unexpected error analyzing receipt {receipt.id}")
            self._release_claim(receipt, error="Unexpected error during analysis")
            raise

        try:
            items, warnings = self._store_analysis(receipt, analysis)
        except UnprocessableAnalysisError:
            raise
        except Exception:
            logger.exception(f"Could not store the analysis of receipt {receipt.id}")
            self._release_claim(receipt, error="Unexpected error while saving the analysis")
            raise

        reconciliation = self.stock_service.reconcile_receipt(user_id, receipt.id, items)

        self.db.refresh(receipt)
        return AnalysisOutcome(receipt=receipt, warnings=warnings, reconciliation=reconciliation)

    def _store_analysis(
        self, receipt: Receipt, analysis: ReceiptAnalysis
    ) -> tuple[list[ValidatedLineItem], list[str]]:
        """Validate the model output and persist it on the receipt in one commit."""
        items, warnings = validate_line_items(analysis.items, get_categories_by_name(self.db))

        if not items:
            receipt.store_name = None
            receipt.total_amount = None
            receipt.purchase_date = None
            receipt.is_analyzed = False
            receipt.status = ReceiptStatus.FAILED.value
            receipt.analysis_started_at = None
            receipt.analysis_error = "No valid products were found"
            self.db.commit()
            raise UnprocessableAnalysisError(
                "No valid products were found in the analysis. "
                "Try again or upload a clearer image.",
                warnings,
            )

        total = analysis.total_amount
        if total is None or total < 0 or not fits(total, MAX_MONEY):
            total = sum((item.total_price for item in items), Decimal("0"))
        # Many huge items can still add up past the column
        total_amount = round_money(total) if fits(total, MAX_MONEY) else None

        if analysis.store_name:
            receipt.store_name = analysis.store_name[:STORE_NAME_MAX_LENGTH]
        receipt.purchase_date = analysis.purchase_date
        receipt.total_amount = total_amount
        receipt.line_items = [
            LineItem(
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                category_id=item.category_id,
                is_discount=item.is_discount,
            )
            for item in items
        ]
        receipt.is_analyzed = True
        receipt.status = ReceiptStatus.ANALYZED.value
        receipt.analysis_started_at = None
        receipt.analysis_error = None
        self.db.commit()
        logger.info(f"Receipt {receipt.id} analyzed: {len(items)} item(s), total {total_amount}")
        return items, warnings

    def _claim_for_analysis(self, receipt: Receipt) -> None:
        """Atomically mark the receipt as analyzing unless a live claim exists."""
        now = datetime.now(UTC)
        cutoff = now - timedelta(seconds=self.settings.analysis_stale_after_seconds)
        claimed = (
            self.db.query(Receipt)
            .filter(
                Receipt.id == receipt.id,
                or_(
                    Receipt.status != ReceiptStatus.ANALYZING.value,
                    Receipt.analysis_started_at.is_(None),
                    Receipt.analysis_started_at < cutoff,
                ),
            )
            .update(
                {
                    Receipt.status: ReceiptStatus.ANALYZING.value,
                    Receipt.analysis_started_at: now,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        if not claimed:
            raise AnalysisInProgressError("This receipt is already being analyzed")
        self.db.refresh(receipt)

    def _release_claim(self, receipt: Receipt, error: str) -> None:
        """Drop the claim after a failed attempt. Earlier results are kept."""
        self.db.rollback()
        self.db.refresh(receipt)
        receipt.status = (
            ReceiptStatus.ANALYZED.value if receipt.is_analyzed else ReceiptStatus.FAILED.value
        )
        receipt.analysis_started_at = None
        receipt.analysis_error = error
        self.db.commit()

    async def prefill_store_name(self, receipt_id: int) -> str | None:
        """Fill in the store name of a fresh upload. Never overrides analysis results."""
        receipt = self.db.query(Receipt).filter(Receipt.id == receipt_id).first()
        if not receipt or not receipt.image_data:
            return None
        if receipt.is_analyzed or receipt.store_name:
            return None

        store_name = await self.analyzer.extract_store_name(
            receipt.image_data, receipt.image_content_type or "image/jpeg"
        )
        if not store_name:
            return None

        # Re-check: a full analysis may have finished while the model was answering
        self.db.refresh(receipt)
        if receipt.is_analyzed or receipt.store_name:
            return None

        receipt.store_name = store_name[:STORE_NAME_MAX_LENGTH]
        self.db.commit()
        logger.info(f"Pre-filled store name for receipt {receipt_id}: {store_name}")
        return receipt.store_name
