"""Store name pre-fill tests."""

from unittest.mock import AsyncMock, patch

import pytest

from housespend.models.receipt import Receipt
from housespend.services.receipt_service import ReceiptService
from housespend.tasks.store_name_prefill import prefill_store_name


@pytest.fixture
def receipt(db, auth_headers):
    receipt = Receipt(user_id=auth_headers.user_id, image_data=b"img", image_content_type="image/png")
    db.add(receipt)
    db.commit()
    return receipt


@pytest.fixture
def analyzer():
    mock = AsyncMock()
    mock.extract_store_name.return_value = "Mercadona"
    return mock


@pytest.mark.asyncio
async def test_prefill_sets_store_name(db, receipt, analyzer):
    service = ReceiptService(db, analyzer=analyzer)

    assert await service.prefill_store_name(receipt.id) == "Mercadona"

    db.refresh(receipt)
    assert receipt.store_name == "Mercadona"
    analyzer.extract_store_name.assert_awaited_once_with(b"img", "image/png")


@pytest.mark.asyncio
async def test_prefill_does_not_override_analysis(db, receipt, analyzer):
    receipt.is_analyzed = True
    receipt.store_name = "Lidl"
    db.commit()

    assert await ReceiptService(db, analyzer=analyzer).prefill_store_name(receipt.id) is None

    db.refresh(receipt)
    assert receipt.store_name == "Lidl"
    analyzer.extract_store_name.assert_not_called()


@pytest.mark.asyncio
async def test_prefill_without_result_leaves_receipt(db, receipt, analyzer):
    analyzer.extract_store_name.return_value = None

    assert await ReceiptService(db, analyzer=analyzer).prefill_store_name(receipt.id) is None

    db.refresh(receipt)
    assert receipt.store_name is None


@pytest.mark.asyncio
async def test_prefill_missing_receipt(db, analyzer):
    assert await ReceiptService(db, analyzer=analyzer).prefill_store_name(9999) is None


def test_task_swallows_failures(db, receipt):
    with (
        patch("housespend.tasks.store_name_prefill.SessionLocal", return_value=db),
        patch("housespend.tasks.store_name_prefill.ReceiptService.prefill_store_name",
              new=AsyncMock(side_effect=RuntimeError("boom"))),
        patch.object(db, "close"),
    ):
        result = prefill_store_name.run(receipt.id)

    assert result == {"receipt_id": receipt.id, "store_name": None}


def test_task_returns_store_name(db, receipt):
    with (
        patch("housespend.tasks.store_name_prefill.SessionLocal", return_value=db),
        patch("housespend.tasks.store_name_prefill.ReceiptService.prefill_store_name",
              new=AsyncMock(return_value="Aldi")),
        patch.object(db, "close"),
    ):
        result = prefill_store_name.run(receipt.id)

    assert result == {"receipt_id": receipt.id, "store_name": "Aldi"}
