"""Stock ledger tests."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func

from housespend.models.receipt import Receipt
from housespend.models.stock import StockItem, StockTransaction
from housespend.services.receipt_validation import ValidatedLineItem
from housespend.services.stock_service import StockService, normalize_name


def create_item(client, headers, **fields):
    payload = {"product_name": "Arroz", "current_quantity": "7", **fields}
    response = client.post("/api/v1/stock", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def ledger_sum(db, stock_item_id: int) -> Decimal:
    total = (
        db.query(func.sum(StockTransaction.quantity))
        .filter(StockTransaction.stock_item_id == stock_item_id)
        .scalar()
    )
    return Decimal(str(total or 0))


def assert_ledger_balanced(db, stock_item_id: int):
    db.expire_all()
    item = db.get(StockItem, stock_item_id)
    assert ledger_sum(db, stock_item_id) == item.current_quantity


def line(name: str, quantity: str) -> ValidatedLineItem:
    return ValidatedLineItem(
        name=name, quantity=Decimal(quantity), unit_price=Decimal("1"), total_price=Decimal("1")
    )


@pytest.fixture
def receipt(db, auth_headers):
    receipt = Receipt(user_id=auth_headers.user_id, image_data=b"x", image_content_type="image/png")
    db.add(receipt)
    db.commit()
    return receipt


def test_normalize_name():
    assert normalize_name("  Leche Entera ") == "leche entera"


# --- Manual operations ---


def test_create_stock_item_records_initial_stock(client, auth_headers, db):
    data = create_item(client, auth_headers, unit="kg", min_quantity="2")

    assert data["product_name"] == "Arroz"
    assert data["normalized_name"] == "arroz"
    assert Decimal(data["current_quantity"]) == Decimal("7")
    assert data["unit"] == "kg"
    assert data["is_low_stock"] is False

    transactions = client.get(
        f"/api/v1/stock/{data['id']}/transactions", headers=auth_headers
    ).json()
    assert len(transactions) == 1
    assert transactions[0]["transaction_type"] == "adjustment"
    assert transactions[0]["notes"] == "Initial stock"
    assert_ledger_balanced(db, data["id"])


def test_create_duplicate_is_rejected(client, auth_headers):
    create_item(client, auth_headers, product_name="Garlic")
    response = client.post(
        "/api/v1/stock", headers=auth_headers, json={"product_name": "  garlic "}
    )
    assert response.status_code == 409
    assert response.json()["code"] == "conflict"


def test_same_name_allowed_for_different_users(client, auth_headers, other_auth_headers):
    create_item(client, auth_headers, product_name="Garlic")
    create_item(client, other_auth_headers, product_name="Garlic")


def test_create_with_unknown_category(client, auth_headers):
    response = client.post(
        "/api/v1/stock", headers=auth_headers, json={"product_name": "Sal", "category_id": 9999}
    )
    assert response.status_code == 400


def test_adjust_records_difference(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.post(
        f"/api/v1/stock/{item['id']}/adjust", headers=auth_headers, json={"quantity": "10"}
    )

    assert response.status_code == 200
    assert Decimal(response.json()["current_quantity"]) == Decimal("10")
    latest = client.get(f"/api/v1/stock/{item['id']}/transactions", headers=auth_headers).json()[0]
    assert latest["transaction_type"] == "adjustment"
    assert Decimal(latest["quantity"]) == Decimal("3")
    assert latest["notes"].startswith("Manual adjustment:")
    assert_ledger_balanced(db, item["id"])


def test_adjust_rejects_negative(client, auth_headers):
    item = create_item(client, auth_headers)
    response = client.post(
        f"/api/v1/stock/{item['id']}/adjust", headers=auth_headers, json={"quantity": "-1"}
    )
    assert response.status_code == 400


def test_consume(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.post(
        f"/api/v1/stock/{item['id']}/consume", headers=auth_headers, json={"quantity": "2.5"}
    )

    assert response.status_code == 200
    assert Decimal(response.json()["current_quantity"]) == Decimal("4.5")
    latest = client.get(f"/api/v1/stock/{item['id']}/transactions", headers=auth_headers).json()[0]
    assert latest["transaction_type"] == "consumption"
    assert Decimal(latest["quantity"]) == Decimal("-2.5")
    assert latest["notes"] == "Manual consumption"
    assert_ledger_balanced(db, item["id"])


def test_consume_more_than_available(client, auth_headers, db):
    item = create_item(client, auth_headers, current_quantity="3")

    response = client.post(
        f"/api/v1/stock/{item['id']}/consume", headers=auth_headers, json={"quantity": "5"}
    )

    assert response.status_code == 409
    assert response.json()["code"] == "insufficient_stock"
    db.expire_all()
    assert db.get(StockItem, item["id"]).current_quantity == Decimal("3")
    assert db.query(StockTransaction).filter_by(stock_item_id=item["id"]).count() == 1


@pytest.mark.parametrize("quantity", ["0", "-1"])
def test_consume_requires_positive_quantity(client, auth_headers, quantity):
    item = create_item(client, auth_headers)
    response = client.post(
        f"/api/v1/stock/{item['id']}/consume", headers=auth_headers, json={"quantity": quantity}
    )
    assert response.status_code == 400


@pytest.mark.parametrize("operation", ["adjust", "consume", "expire"])
def test_quantity_out_of_range_is_rejected(client, auth_headers, db, operation):
    item = create_item(client, auth_headers)

    response = client.post(
        f"/api/v1/stock/{item['id']}/{operation}", headers=auth_headers, json={"quantity": "1e30"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_input"
    assert_ledger_balanced(db, item["id"])
    assert db.get(StockItem, item["id"]).current_quantity == Decimal("7")


@pytest.mark.parametrize("field", ["current_quantity", "min_quantity", "max_quantity"])
def test_create_with_quantity_out_of_range(client, auth_headers, db, field):
    response = client.post(
        "/api/v1/stock", headers=auth_headers, json={"product_name": "Arroz", field: "1e30"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_input"
    assert db.query(StockItem).count() == 0


def test_update_with_quantity_out_of_range(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.put(
        f"/api/v1/stock/{item['id']}", headers=auth_headers, json={"current_quantity": "1e30"}
    )

    assert response.status_code == 400
    assert_ledger_balanced(db, item["id"])


def test_consume_everything(client, auth_headers):
    item = create_item(client, auth_headers, current_quantity="3")
    response = client.post(
        f"/api/v1/stock/{item['id']}/consume", headers=auth_headers, json={"quantity": "3"}
    )
    assert response.status_code == 200
    assert Decimal(response.json()["current_quantity"]) == Decimal("0")


def test_expire(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.post(
        f"/api/v1/stock/{item['id']}/expire",
        headers=auth_headers,
        json={"quantity": "1", "notes": "Moho"},
    )

    assert response.status_code == 200
    latest = client.get(f"/api/v1/stock/{item['id']}/transactions", headers=auth_headers).json()[0]
    assert latest["transaction_type"] == "expiration"
    assert latest["notes"] == "Moho"
    assert_ledger_balanced(db, item["id"])


def test_update_quantity_is_ledgered(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.put(
        f"/api/v1/stock/{item['id']}",
        headers=auth_headers,
        json={"product_name": "Arroz integral", "current_quantity": "4", "min_quantity": "5"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["normalized_name"] == "arroz integral"
    assert data["is_low_stock"] is True
    assert_ledger_balanced(db, item["id"])


def test_update_rename_to_existing_is_rejected(client, auth_headers):
    create_item(client, auth_headers, product_name="Pasta")
    item = create_item(client, auth_headers)

    response = client.put(
        f"/api/v1/stock/{item['id']}", headers=auth_headers, json={"product_name": "PASTA"}
    )
    assert response.status_code == 409


def test_update_rejects_min_above_max(client, auth_headers):
    item = create_item(client, auth_headers)
    response = client.put(
        f"/api/v1/stock/{item['id']}",
        headers=auth_headers,
        json={"min_quantity": "10", "max_quantity": "5"},
    )
    assert response.status_code == 400


def test_delete_removes_ledger(client, auth_headers, db):
    item = create_item(client, auth_headers)

    response = client.delete(f"/api/v1/stock/{item['id']}", headers=auth_headers)

    assert response.status_code == 204
    assert db.query(StockTransaction).filter_by(stock_item_id=item["id"]).count() == 0
    assert client.get(f"/api/v1/stock/{item['id']}", headers=auth_headers).status_code == 404


def test_stock_is_scoped_to_owner(client, auth_headers, other_auth_headers):
    item = create_item(client, auth_headers)
    assert client.get(f"/api/v1/stock/{item['id']}", headers=other_auth_headers).status_code == 404
    response = client.post(
        f"/api/v1/stock/{item['id']}/consume", headers=other_auth_headers, json={"quantity": "1"}
    )
    assert response.status_code == 404


def test_low_stock_alerts(client, auth_headers):
    create_item(client, auth_headers, product_name="Aceite", current_quantity="1", min_quantity="2")
    create_item(client, auth_headers, product_name="Sal", current_quantity="0", min_quantity="1")
    create_item(client, auth_headers, product_name="Azúcar", current_quantity="5", min_quantity="1")
    create_item(client, auth_headers, product_name="Harina", current_quantity="0")

    data = client.get("/api/v1/stock/alerts", headers=auth_headers).json()

    assert [i["product_name"] for i in data] == ["Sal", "Aceite"]


def test_list_stock_sorted_by_name(client, auth_headers):
    for name in ["Sal", "Aceite", "Leche"]:
        create_item(client, auth_headers, product_name=name)

    data = client.get("/api/v1/stock", headers=auth_headers).json()

    assert [i["product_name"] for i in data] == ["Aceite", "Leche", "Sal"]


def test_transactions_are_paginated(client, auth_headers):
    item = create_item(client, auth_headers, current_quantity="10")
    for _ in range(4):
        client.post(
            f"/api/v1/stock/{item['id']}/consume", headers=auth_headers, json={"quantity": "1"}
        )

    first_page = client.get(
        f"/api/v1/stock/{item['id']}/transactions?page=1&page_size=3", headers=auth_headers
    ).json()
    second_page = client.get(
        f"/api/v1/stock/{item['id']}/transactions?page=2&page_size=3", headers=auth_headers
    ).json()

    assert len(first_page) == 3
    assert len(second_page) == 2
    assert second_page[-1]["notes"] == "Initial stock"


# --- Receipt reconciliation ---


def test_reconcile_creates_and_increments(db, auth_headers, receipt):
    service = StockService(db)

    first = service.reconcile_receipt(auth_headers.user_id, receipt.id, [line("Leche", "2")])
    second = service.reconcile_receipt(auth_headers.user_id, receipt.id, [line("  LECHE", "1.5")])

    assert first.updated == 1
    assert second.updated == 1
    items = db.query(StockItem).filter_by(user_id=auth_headers.user_id).all()
    assert len(items) == 1
    assert items[0].product_name == "Leche"
    assert items[0].current_quantity == Decimal("3.5")
    assert_ledger_balanced(db, items[0].id)


def test_reconcile_continues_after_failure(db, auth_headers, receipt):
    service = StockService(db)
    original = service._apply_purchase

    def flaky(user_id, receipt_id, item):
        if item.name == "Pan":
            raise RuntimeError("database hiccup")
        return original(user_id, receipt_id, item)

    with patch.object(service, "_apply_purchase", side_effect=flaky):
        result = service.reconcile_receipt(
            auth_headers.user_id, receipt.id, [line("Pan", "1"), line("Leche", "2")]
        )

    assert result.updated == 1
    assert result.failed == ["Pan"]
    assert db.query(StockItem).filter_by(normalized_name="leche").count() == 1
    assert db.query(StockItem).filter_by(normalized_name="pan").count() == 0


def test_ledger_invariant_over_mixed_operations(db, auth_headers, receipt):
    service = StockService(db)
    user_id = auth_headers.user_id
    service.reconcile_receipt(user_id, receipt.id, [line("Huevos", "12")])
    item = db.query(StockItem).filter_by(normalized_name="huevos").one()

    service.consume(item.id, user_id, Decimal("3"))
    service.expire(item.id, user_id, Decimal("1"))
    service.adjust(item.id, user_id, Decimal("6"))
    service.reconcile_receipt(user_id, receipt.id, [line("huevos", "6")])

    assert_ledger_balanced(db, item.id)
    assert db.get(StockItem, item.id).current_quantity == Decimal("12")
