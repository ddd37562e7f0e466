"""Return processor: full returns, item returns, status lifecycle and bill deletion."""

import pytest
from sqlalchemy.exc import OperationalError

from shopledger.errors import (
    NotFoundError,
    OverReturnError,
    AlreadyReturnedError,
    PersistenceError,
    ValidationError,
)
from shopledger.extensions import db
from shopledger.models import (
    Bill,
    BillItem,
    Product,
    BILL_STATUS_PAID,
    BILL_STATUS_PARTIAL,
    BILL_STATUS_RETURNED,
)
from shopledger.services import products_service, return_service
from shopledger.signals import bill_changed, product_changed


def _qty(product):
    return db.session.get(Product, product.id).quantity


@pytest.fixture
def pad(make_product):
    return make_product(name="Notepad", quantity=20, price_cents=2500, purchase_price_cents=1500)


class TestReturnBillItem:
    def test_pen_scenario(self, pen, sell):
        bill = sell((pen, 10))
        assert _qty(pen) == 90
        assert bill.total_amount_cents == 10000

        item = return_service.return_bill_item(bill.items[0].id, 4)

        assert _qty(pen) == 94
        assert item.returned_quantity == 4
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_PARTIAL
        # Sale record is never reduced by returns
        assert db.session.get(Bill, bill.id).total_amount_cents == 10000

    def test_over_return_fails_and_changes_nothing(self, pen, sell):
        bill = sell((pen, 5))
        item_id = bill.items[0].id
        return_service.return_bill_item(item_id, 3)

        with pytest.raises(OverReturnError, match="Cannot return more than purchased"):
            return_service.return_bill_item(item_id, 3)

        assert db.session.get(BillItem, item_id).returned_quantity == 3
        assert _qty(pen) == 98
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_PARTIAL

    def test_returning_last_outstanding_units_marks_returned(self, pen, pad, sell):
        bill = sell((pen, 2), (pad, 1))
        pen_item, pad_item = bill.items

        return_service.return_bill_item(pen_item.id, 2)
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_PARTIAL

        return_service.return_bill_item(pad_item.id, 1)
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_RETURNED
        assert _qty(pen) == 100
        assert _qty(pad) == 20

    def test_single_item_full_quantity_goes_straight_to_returned(self, pen, sell):
        bill = sell((pen, 3))
        return_service.return_bill_item(bill.items[0].id, 3)
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_RETURNED

    @pytest.mark.parametrize("qty", [0, -1, "two", 1.5, None])
    def test_invalid_quantity(self, pen, sell, qty):
        bill = sell((pen, 3))
        with pytest.raises(ValidationError):
            return_service.return_bill_item(bill.items[0].id, qty)
        assert db.session.get(BillItem, bill.items[0].id).returned_quantity == 0

    def test_missing_item(self, db_session):
        with pytest.raises(NotFoundError, match="Item not found"):
            return_service.return_bill_item(42, 1)

    def test_deleted_product_is_marked_returned_without_restock(self, pen, sell):
        bill = sell((pen, 2))
        products_service.delete_product(pen.id)

        item = return_service.return_bill_item(bill.items[0].id, 2)

        assert item.returned_quantity == 2
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_RETURNED


class TestReturnBillFull:
    def test_full_return_restores_outstanding_stock(self, pen, pad, sell):
        bill = sell((pen, 10), (pad, 4))
        return_service.return_bill_item(bill.items[0].id, 4)
        assert _qty(pen) == 94

        returned = return_service.return_bill_full(bill.id)

        assert returned.status == BILL_STATUS_RETURNED
        assert all(i.returned_quantity == i.quantity for i in returned.items)
        assert _qty(pen) == 100
        assert _qty(pad) == 20

    def test_duplicate_full_return_rejected(self, pen, sell):
        bill = sell((pen, 2))
        return_service.return_bill_full(bill.id)

        with pytest.raises(AlreadyReturnedError, match="Bill already returned"):
            return_service.return_bill_full(bill.id)

        assert _qty(pen) == 100

    def test_missing_bill(self, db_session):
        with pytest.raises(NotFoundError, match="Bill not found"):
            return_service.return_bill_full(7)

    def test_signals_bill_and_restocked_products(self, pen, pad, sell):
        bill = sell((pen, 1), (pad, 1))
        bills, products = [], []

        def on_bill(sender, **kwargs):
            bills.append(kwargs)

        def on_product(sender, **kwargs):
            products.append(kwargs)

        with bill_changed.connected_to(on_bill), product_changed.connected_to(on_product):
            return_service.return_bill_full(bill.id)

        assert bills == [{"bill_id": bill.id, "action": "returned"}]
        assert sorted(p["product_id"] for p in products) == sorted([pen.id, pad.id])


class TestDeleteBill:
    def test_delete_paid_bill_restores_stock(self, pen, sell):
        bill = sell((pen, 10))

        restored = return_service.delete_bill(bill.id)

        assert restored == 10
        assert _qty(pen) == 100
        assert db.session.get(Bill, bill.id) is None
        assert db.session.query(BillItem).filter_by(bill_id=bill.id).count() == 0

    def test_delete_partial_bill_restores_only_remainder(self, pen, sell):
        bill = sell((pen, 10))
        return_service.return_bill_item(bill.items[0].id, 4)

        restored = return_service.delete_bill(bill.id)

        assert restored == 6
        assert _qty(pen) == 100

    def test_delete_returned_bill_restores_nothing(self, pen, sell):
        bill = sell((pen, 10))
        return_service.return_bill_full(bill.id)
        assert _qty(pen) == 100

        restored = return_service.delete_bill(bill.id)

        assert restored == 0
        assert _qty(pen) == 100
        assert db.session.query(Bill).count() == 0

    def test_delete_missing_bill(self, db_session):
        with pytest.raises(NotFoundError):
            return_service.delete_bill(99)


class TestStatusRecompute:
    def test_no_returns_keeps_current_status(self, pen, sell):
        bill = sell((pen, 1))
        assert return_service.recompute_bill_status(bill) == BILL_STATUS_PAID


class TestStorageFailure:
    @pytest.fixture
    def failing_commit(self, monkeypatch):
        def _commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        def _arm():
            monkeypatch.setattr(db.session, "commit", _commit)

        return _arm

    def test_full_return_rolls_back(self, pen, sell, failing_commit):
        bill = sell((pen, 4))
        assert _qty(pen) == 96
        failing_commit()

        with pytest.raises(PersistenceError, match="Transaction failed: OperationalError"):
            return_service.return_bill_full(bill.id)

        assert db.session.get(Bill, bill.id).status == BILL_STATUS_PAID
        assert db.session.get(BillItem, bill.items[0].id).returned_quantity == 0
        assert _qty(pen) == 96

    def test_route_reports_storage_failure(self, client, pen, sell, failing_commit):
        bill = sell((pen, 4))
        failing_commit()

        response = client.post(f"/api/bills/{bill.id}/return")

        assert response.status_code == 500
        assert response.json["success"] is False
        assert response.json["error"] == "Transaction failed: OperationalError"
        assert db.session.get(Bill, bill.id).status == BILL_STATUS_PAID
        assert _qty(pen) == 96
