# Overview: Pytest coverage for stock status derivation and stock deltas.

import pytest

from stockdesk.errors import InsufficientStockError
from stockdesk.extensions import db
from stockdesk.models import Product
from stockdesk.models.inventory import (
    STATUS_DISCONTINUED,
    STATUS_IN_STOCK,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
)
from stockdesk.services.stock_service import (
    apply_delta,
    derive_status,
    low_stock_products,
    recompute_all_statuses,
    stock_snapshot,
)


class TestDeriveStatus:
    @pytest.mark.parametrize(
        "quantity, min_stock, expected",
        [
            (0, 5, STATUS_OUT_OF_STOCK),
            (1, 5, STATUS_LOW_STOCK),
            (5, 5, STATUS_LOW_STOCK),
            (6, 5, STATUS_IN_STOCK),
            (3, 0, STATUS_IN_STOCK),
            (0, 0, STATUS_OUT_OF_STOCK),
        ],
    )
    def test_status_follows_quantity(self, quantity, min_stock, expected):
        assert derive_status(quantity, min_stock) == expected

    def test_discontinued_is_kept(self):
        assert derive_status(50, 5, STATUS_DISCONTINUED) == STATUS_DISCONTINUED
        assert derive_status(0, 5, STATUS_DISCONTINUED) == STATUS_DISCONTINUED

    def test_idempotent(self):
        for quantity in range(0, 12):
            once = derive_status(quantity, 5)
            assert derive_status(quantity, 5, once) == once


class TestApplyDelta:
    def test_sell_down_to_low_stock(self, db_session, product):
        apply_delta(product, -6)
        db_session.commit()

        assert product.quantity == 4
        assert product.status == STATUS_LOW_STOCK

    def test_sell_everything(self, db_session, product):
        apply_delta(product, -10)
        db_session.commit()

        assert product.quantity == 0
        assert product.status == STATUS_OUT_OF_STOCK

    def test_restore_moves_back_to_in_stock(self, db_session, make_product):
        p = make_product(quantity=0, min_stock=5)
        assert p.status == STATUS_OUT_OF_STOCK

        apply_delta(p, 8)
        db_session.commit()

        assert p.quantity == 8
        assert p.status == STATUS_IN_STOCK

    def test_negative_result_rejected_and_untouched(self, db_session, product):
        with pytest.raises(InsufficientStockError) as exc:
            apply_delta(product, -11)

        assert product.quantity == 10
        assert exc.value.details["available"] == 10
        assert exc.value.details["requested"] == 11
        assert "Available: 10" in exc.value.message

    def test_discontinued_survives_delta(self, db_session, make_product):
        p = make_product(quantity=10, status=STATUS_DISCONTINUED)
        apply_delta(p, 5)
        db_session.commit()

        assert p.quantity == 15
        assert p.status == STATUS_DISCONTINUED


def test_low_stock_products_excludes_discontinued(db_session, make_product):
    empty = make_product(quantity=0, name="Empty")
    low = make_product(quantity=2, name="Low")
    make_product(quantity=50, name="Plenty")
    make_product(quantity=1, name="Retired", status=STATUS_DISCONTINUED)

    result = low_stock_products()

    assert [p.id for p in result] == [empty.id, low.id]


def test_stock_snapshot(db_session, make_product):
    make_product(quantity=10, min_stock=5, price_per_unit_cents=250, category="Feed")
    make_product(quantity=3, min_stock=5, price_per_unit_cents=1000, category="Feed")
    make_product(quantity=0, min_stock=5, price_per_unit_cents=999, category="Drugs")
    make_product(quantity=4, min_stock=1, price_per_unit_cents=100, category="Tools", status=STATUS_DISCONTINUED)

    snap = stock_snapshot()

    assert snap["total_products"] == 4
    assert snap["total_categories"] == 3
    assert snap["total_quantity"] == 17
    assert snap["total_stock_value_cents"] == 10 * 250 + 3 * 1000 + 4 * 100
    assert snap["in_stock_count"] == 1
    assert snap["low_stock_count"] == 1
    assert snap["out_of_stock_count"] == 1
    assert snap["discontinued_count"] == 1


def test_stock_snapshot_empty_catalogue(db_session):
    snap = stock_snapshot()
    assert snap["total_products"] == 0
    assert snap["total_stock_value_cents"] == 0


def test_recompute_all_statuses_repairs_drift(db_session, make_product):
    drifted = make_product(quantity=0, min_stock=5)
    make_product(quantity=20, min_stock=5)
    retired = make_product(quantity=0, status=STATUS_DISCONTINUED)

    db_session.query(Product).filter_by(id=drifted.id).update({"status": STATUS_IN_STOCK})
    db_session.commit()

    changed = recompute_all_statuses()
    db_session.commit()

    assert changed == 1
    assert db.session.get(Product, drifted.id).status == STATUS_OUT_OF_STOCK
    assert db.session.get(Product, retired.id).status == STATUS_DISCONTINUED
