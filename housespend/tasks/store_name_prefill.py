"""Celery task that reads the store name of a freshly uploaded receipt."""

import asyncio
import logging

from celery.exceptions import SoftTimeLimitExceeded

from housespend.celery_app import app as celery_app
from housespend.config import get_settings
from housespend.database import SessionLocal
from housespend.services.analysis_client import ReceiptAnalyzer
from housespend.services.encryption import EncryptionService
from housespend.services.receipt_service import ReceiptService
from housespend.services.secret_store import SecretStore

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.prefill_store_name")
def prefill_store_name(receipt_id: int) -> dict:
    """Fill in a receipt's store name ahead of the full analysis.

    Args:
        receipt_id: ID of the uploaded Receipt

    Returns:
        Dict with the store name that was written, if any
    """
    settings = get_settings()
    db = SessionLocal()
    try:
        secret_store = SecretStore(db, EncryptionService(settings.encryption_key))
        service = ReceiptService(db, analyzer=ReceiptAnalyzer(secret_store, settings), settings=settings)
        store_name = asyncio.run(service.prefill_store_name(receipt_id))
        return {"receipt_id": receipt_id, "store_name": store_name}
    except SoftTimeLimitExceeded:
        logger.warning(f"Store name pre-fill for receipt {receipt_id} timed out")
        return {"receipt_id": receipt_id, "store_name": None}
    except Exception as e:
        logger.warning(f"Store name pre-fill for receipt {receipt_id} failed: {e}")
        db.rollback()
        return {"receipt_id": receipt_id, "store_name": None}
    finally:
        db.close()
