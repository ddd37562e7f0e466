"""Bill ledger: atomic bill creation, cost capture, stock policy and listing."""

from datetime import datetime, timedelta

import pytest

from shopledger.config import SALE_STOCK_POLICY_ENFORCE_FLOOR
from shopledger.errors import NotFoundError, InsufficientStockError, ValidationError
from shopledger.extensions import db
from shopledger.models import Bill, BillItem, Product, BILL_STATUS_PAID
from shopledger.services import billing_service
from shopledger.signals import bill_changed

from tests.conftest import line_for


def _counts():
    return db.session.query(Bill).count(), db.session.query(BillItem).count()


class TestSaveBill:
    def test_decrements_stock_and_records_items(self, pen):
        bill = billing_service.save_bill(
            customer_name="Asha",
            total_amount_cents=3000,
            items=[line_for(pen, 3)],
        )

        assert db.session.get(Product, pen.id).quantity == 97
        assert bill.status == BILL_STATUS_PAID
        assert bill.customer_name == "Asha"
        assert bill.total_amount_cents == 3000
        assert len(bill.items) == 1
        assert sum(item.total_cents for item in bill.items) == 3000

        item = bill.items[0]
        assert item.product_id == pen.id
        assert item.product_name == "Pen"
        assert item.quantity == 3
        assert item.price_cents == 1000
        assert item.returned_quantity == 0

    def test_captures_cost_at_sale_time(self, pen):
        bill = billing_service.save_bill(total_amount_cents=1000, items=[line_for(pen, 1)])

        pen.purchase_price_cents = 750
        db.session.commit()

        assert db.session.get(BillItem, bill.items[0].id).purchase_price_cents == 600

    @pytest.mark.parametrize("customer_name", [None, "", "   "])
    def test_defaults_customer_name(self, pen, customer_name):
        bill = billing_service.save_bill(
            customer_name=customer_name, total_amount_cents=1000, items=[line_for(pen, 1)]
        )
        assert bill.customer_name == "Walk-in Customer"

    def test_total_amount_is_trusted_as_given(self, pen):
        bill = billing_service.save_bill(total_amount_cents=999, items=[line_for(pen, 2)])
        assert bill.total_amount_cents == 999

    def test_item_name_kept_as_submitted(self, pen):
        line = line_for(pen, 1)
        line["name"] = "Pen (blue)"
        bill = billing_service.save_bill(total_amount_cents=1000, items=[line])
        assert bill.items[0].product_name == "Pen (blue)"

    @pytest.mark.parametrize("name, stored", [("", ""), ("  ", "  "), (None, "")])
    def test_blank_item_name_stored_as_given(self, pen, name, stored):
        line = line_for(pen, 1)
        line["name"] = name
        bill = billing_service.save_bill(total_amount_cents=1000, items=[line])
        assert bill.items[0].product_name == stored

    def test_multiple_products(self, pen, make_product):
        pad = make_product(name="Notepad", quantity=20, price_cents=2500, purchase_price_cents=1500)

        bill = billing_service.save_bill(
            total_amount_cents=2 * 1000 + 3 * 2500,
            items=[line_for(pen, 2), line_for(pad, 3)],
        )

        assert db.session.get(Product, pen.id).quantity == 98
        assert db.session.get(Product, pad.id).quantity == 17
        assert [i.purchase_price_cents for i in bill.items] == [600, 1500]

    def test_unknown_product_rolls_back_everything(self, pen):
        with pytest.raises(NotFoundError):
            billing_service.save_bill(
                total_amount_cents=1000,
                items=[
                    line_for(pen, 5),
                    {"product_id": 9999, "name": "Ghost", "quantity": 1, "price_cents": 100, "total_cents": 100},
                ],
            )

        assert _counts() == (0, 0)
        assert db.session.get(Product, pen.id).quantity == 100

    def test_selling_below_zero_allowed_by_default(self, make_product):
        scarce = make_product(name="Scarce", quantity=2)

        billing_service.save_bill(total_amount_cents=5000, items=[line_for(scarce, 5)])

        assert db.session.get(Product, scarce.id).quantity == -3

    def test_enforce_floor_policy_rejects_oversell(self, app, monkeypatch, pen, make_product):
        monkeypatch.setitem(app.config, "SALE_STOCK_POLICY", SALE_STOCK_POLICY_ENFORCE_FLOOR)
        scarce = make_product(name="Scarce", quantity=2)

        with pytest.raises(InsufficientStockError):
            billing_service.save_bill(
                total_amount_cents=8000,
                items=[line_for(pen, 3), line_for(scarce, 5)],
            )

        assert _counts() == (0, 0)
        assert db.session.get(Product, pen.id).quantity == 100
        assert db.session.get(Product, scarce.id).quantity == 2

    def test_enforce_floor_policy_allows_exact_stock(self, app, monkeypatch, make_product):
        monkeypatch.setitem(app.config, "SALE_STOCK_POLICY", SALE_STOCK_POLICY_ENFORCE_FLOOR)
        scarce = make_product(name="Scarce", quantity=2)

        billing_service.save_bill(total_amount_cents=2000, items=[line_for(scarce, 2)])

        assert db.session.get(Product, scarce.id).quantity == 0

    @pytest.mark.parametrize("items", [
        [],
        None,
        [{"product_id": 1, "name": "Pen", "quantity": 0, "price_cents": 100, "total_cents": 0}],
        [{"product_id": 1, "name": "Pen", "quantity": 1.5, "price_cents": 100, "total_cents": 150}],
        [{"name": "Pen", "quantity": 1, "price_cents": 100, "total_cents": 100}],
        ["not an object"],
    ])
    def test_invalid_items_rejected(self, pen, items):
        with pytest.raises(ValidationError):
            billing_service.save_bill(total_amount_cents=100, items=items)
        assert _counts() == (0, 0)

    def test_emits_signal_on_success_only(self, pen):
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs)

        with bill_changed.connected_to(receiver):
            bill = billing_service.save_bill(total_amount_cents=1000, items=[line_for(pen, 1)])
            with pytest.raises(NotFoundError):
                billing_service.save_bill(
                    total_amount_cents=100,
                    items=[{"product_id": 404, "name": "X", "quantity": 1, "price_cents": 100, "total_cents": 100}],
                )

        assert received == [{"bill_id": bill.id, "action": "saved"}]


class TestListBills:
    def test_newest_first_limited(self, app, monkeypatch, pen, sell):
        monkeypatch.setitem(app.config, "RECENT_BILLS_LIMIT", 3)
        base = datetime(2024, 1, 1, 9, 0)
        ids = []
        for offset in range(5):
            bill = sell((pen, 1))
            bill.created_at = base + timedelta(hours=offset)
            ids.append(bill.id)
        db.session.commit()

        bills = billing_service.list_recent_bills()

        assert [b.id for b in bills] == list(reversed(ids))[:3]
        assert all(len(b.items) == 1 for b in bills)

    def test_default_limit_is_fifty(self, app):
        assert app.config["RECENT_BILLS_LIMIT"] == 50


class TestRenameBill:
    def test_rename_has_no_side_effects(self, pen, sell):
        bill = sell((pen, 2), customer_name="Asha")

        renamed = billing_service.rename_bill(bill.id, "Ravi")

        assert renamed.customer_name == "Ravi"
        assert renamed.status == BILL_STATUS_PAID
        assert renamed.total_amount_cents == 2000
        assert db.session.get(Product, pen.id).quantity == 98

    def test_rename_missing_bill(self, db_session):
        with pytest.raises(NotFoundError, match="Bill not found"):
            billing_service.rename_bill(1, "Ravi")
