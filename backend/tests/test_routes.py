# Overview: Pytest coverage for the HTTP API: status codes and JSON envelopes.

from stockdesk.extensions import db
from stockdesk.models import Product, Sale


def _sale_body(staff, product, **overrides):
    body = {
        "staff_id": staff.id,
        "product_id": product.id,
        "quantity": 4,
        "unit_price_cents": 200,
        "payment_method": "cash",
    }
    body.update(overrides)
    return body


def _quantity(product_id):
    db.session.expire_all()
    return db.session.get(Product, product_id).quantity


class TestSalesApi:
    def test_create_sale(self, client, db_session, staff, product):
        resp = client.post("/api/sales", json=_sale_body(staff, product))

        assert resp.status_code == 201
        sale = resp.get_json()["sale"]
        assert sale["total_amount_cents"] == 800
        assert sale["payment_method"] == "CASH"
        assert sale["product"]["sku"] == product.sku
        assert _quantity(product.id) == 6

    def test_create_sale_insufficient_stock(self, client, db_session, staff, product):
        resp = client.post("/api/sales", json=_sale_body(staff, product, quantity=11))

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["code"] == "INSUFFICIENT_STOCK"
        assert body["error"] == "Insufficient stock. Available: 10, Requested: 11"
        assert body["details"] == {"product_id": product.id, "available": 10, "requested": 11}
        assert _quantity(product.id) == 10

    def test_create_sale_validation(self, client, db_session, staff, product):
        resp = client.post("/api/sales", json={"staff_id": staff.id})
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_INPUT"
        assert "Missing required fields" in resp.get_json()["error"]

        resp = client.post("/api/sales", json=_sale_body(staff, product, quantity=2.5))
        assert resp.status_code == 400

        resp = client.post("/api/sales", json=_sale_body(staff, product, payment_method="BITCOIN"))
        assert resp.status_code == 400

        resp = client.post("/api/sales", data="not json", content_type="text/plain")
        assert resp.status_code == 400

    def test_create_sale_unknown_product(self, client, db_session, staff, product):
        resp = client.post("/api/sales", json=_sale_body(staff, product, product_id=product.id + 50))
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"

    def test_create_sale_discontinued(self, client, db_session, staff, make_product):
        p = make_product(quantity=10, status="DISCONTINUED")
        resp = client.post("/api/sales", json=_sale_body(staff, p))
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "INVALID_STATE"

    def test_get_update_delete(self, client, db_session, staff, product):
        sale_id = client.post("/api/sales", json=_sale_body(staff, product)).get_json()["sale"]["id"]

        resp = client.get(f"/api/sales/{sale_id}")
        assert resp.status_code == 200
        assert resp.get_json()["sale"]["id"] == sale_id

        resp = client.put(f"/api/sales/{sale_id}", json={"quantity": 2, "notes": "fixed"})
        assert resp.status_code == 200
        assert resp.get_json()["sale"]["total_amount_cents"] == 400
        assert _quantity(product.id) == 8

        resp = client.put(f"/api/sales/{sale_id}", json={"product_id": product.id})
        assert resp.status_code == 400
        assert "cannot be changed" in resp.get_json()["error"]

        resp = client.delete(f"/api/sales/{sale_id}")
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "message": "Sale deleted successfully"}
        assert _quantity(product.id) == 10

        resp = client.get(f"/api/sales/{sale_id}")
        assert resp.status_code == 404

    def test_list_sales(self, client, db_session, staff, product):
        client.post("/api/sales", json=_sale_body(staff, product, quantity=1))
        client.post("/api/sales", json=_sale_body(staff, product, quantity=1, payment_method="CARD"))

        resp = client.get("/api/sales?payment_method=card")
        assert resp.status_code == 200
        assert resp.get_json()["pagination"]["total"] == 1

        resp = client.get(f"/api/sales?staff_id={staff.id}&per_page=1")
        body = resp.get_json()
        assert body["count"] == 1
        assert body["pagination"]["has_next"] is True

        assert client.get("/api/sales?start_date=yesterday").status_code == 400
        assert client.get("/api/sales?staff_id=abc").status_code == 400

    def test_reports(self, client, db_session, staff, product):
        client.post(
            "/api/sales",
            json=_sale_body(staff, product, quantity=2, sale_date="2026-05-10T09:00:00Z"),
        )

        daily = client.get("/api/sales/daily-report?date=2026-05-10")
        assert daily.status_code == 200
        assert daily.get_json()["total_revenue_cents"] == 400

        monthly = client.get("/api/sales/monthly-report?year=2026&month=5")
        assert monthly.status_code == 200
        body = monthly.get_json()
        assert body["month"] == "05"
        assert body["average_sale_amount_cents"] == 400
        assert body["top_products"][0]["product_id"] == product.id

        assert client.get("/api/sales/monthly-report?year=2026&month=13").status_code == 400

    def test_transaction_failure_is_generic(self, client, db_session, staff, product, monkeypatch):
        from stockdesk.services import sales_service

        def broken_delta(p, delta):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(sales_service, "apply_delta", broken_delta)

        resp = client.post("/api/sales", json=_sale_body(staff, product))

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error", "code": "TRANSACTION_FAILED"}
        assert db_session.query(Sale).count() == 0

    def test_update_to_zero_quantity(self, client, db_session, staff, product):
        sale_id = client.post("/api/sales", json=_sale_body(staff, product)).get_json()["sale"]["id"]

        resp = client.put(f"/api/sales/{sale_id}", json={"quantity": 0})

        assert resp.status_code == 400
        assert resp.get_json()["code"] == "INVALID_INPUT"
        assert _quantity(product.id) == 6

    def test_unexpected_error_reading_sale_is_generic(self, client, db_session, monkeypatch):
        from stockdesk.services import sales_service

        def broken_get(sale_id):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(sales_service, "get_sale", broken_get)

        resp = client.get("/api/sales/1")

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestStaffApi:
    def test_crud(self, client, db_session):
        resp = client.post(
            "/api/staff",
            json={"employee_id": "emp-9", "first_name": "Akua", "last_name": "Ofori",
                  "department": "Sales", "hire_date": "2026-02-01T00:00:00Z"},
        )
        assert resp.status_code == 201
        created = resp.get_json()["staff"]
        assert created["employee_id"] == "EMP-9"
        assert created["is_active"] is True
        assert created["hire_date"] == "2026-02-01T00:00:00Z"

        resp = client.put(f"/api/staff/{created['id']}", json={"is_active": False, "position": "Cashier"})
        assert resp.status_code == 200
        assert resp.get_json()["staff"]["is_active"] is False

        resp = client.put(f"/api/staff/{created['id']}", json={"is_active": "true"})
        assert resp.get_json()["staff"]["is_active"] is True

        resp = client.get(f"/api/staff/{created['id']}")
        assert resp.get_json()["staff"]["position"] == "Cashier"

        resp = client.delete(f"/api/staff/{created['id']}")
        assert resp.get_json() == {"ok": True}
        assert client.get(f"/api/staff/{created['id']}").status_code == 404

    def test_validation_and_conflict(self, client, db_session, make_staff):
        make_staff(employee_id="EMP-001")

        resp = client.post("/api/staff", json={"employee_id": "emp-001", "first_name": "X", "last_name": "Y"})
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "CONFLICT"

        resp = client.post("/api/staff", json={"employee_id": "EMP-2", "first_name": "X"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]

        resp = client.post("/api/staff", json={"employee_id": "EMP-2", "first_name": "X", "last_name": "Y",
                                                "is_active": "maybe"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "is_active must be a boolean"

        resp = client.post("/api/staff", json={"employee_id": "EMP-2", "first_name": "X", "last_name": "Y",
                                                "id": 50})
        assert resp.status_code == 400

        assert client.get("/api/staff?is_active=sometimes").status_code == 400

    def test_list_and_search(self, client, db_session, make_staff):
        make_staff("Ama", "Mensah", department="Sales")
        make_staff("Kofi", "Boateng", department="Stores", is_active=False)

        body = client.get("/api/staff?page=1&per_page=1").get_json()
        assert body["count"] == 1
        assert body["pagination"]["total"] == 2

        body = client.get("/api/staff/search?q=boat").get_json()
        assert [s["first_name"] for s in body["items"]] == ["Kofi"]

        body = client.get("/api/staff?is_active=true").get_json()
        assert [s["first_name"] for s in body["items"]] == ["Ama"]


class TestProductsApi:
    def test_crud(self, client, db_session):
        resp = client.post(
            "/api/products",
            json={"sku": "lm-25", "name": "Layer mash", "category": "Feed",
                  "price_per_unit_cents": 18500, "quantity": 3, "min_stock": 5},
        )
        assert resp.status_code == 201
        created = resp.get_json()["product"]
        assert created["sku"] == "LM-25"
        assert created["status"] == "LOW_STOCK"

        resp = client.get("/api/products/low-stock")
        assert resp.get_json()["count"] == 1

        resp = client.put(f"/api/products/{created['id']}", json={"quantity": 40})
        assert resp.status_code == 200
        assert resp.get_json()["product"]["status"] == "IN_STOCK"

        resp = client.get(f"/api/products/{created['id']}")
        assert resp.get_json()["product"]["quantity"] == 40

        resp = client.delete(f"/api/products/{created['id']}")
        assert resp.status_code == 200
        assert client.get(f"/api/products/{created['id']}").status_code == 404

    def test_validation_and_conflict(self, client, db_session, make_product):
        make_product(sku="DUP")

        resp = client.post("/api/products", json={"sku": "dup", "name": "X", "category": "Feed",
                                                   "price_per_unit_cents": 100})
        assert resp.status_code == 409
        assert resp.get_json()["code"] == "CONFLICT"

        resp = client.post("/api/products", json={"sku": "NEW", "name": "X", "category": "Feed",
                                                   "price_per_unit_cents": -1})
        assert resp.status_code == 400

        resp = client.post("/api/products", json={"sku": "NEW", "name": "X"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]

        resp = client.post("/api/products", json={"sku": "NEW", "name": "X", "category": "Feed",
                                                   "price_per_unit_cents": 100, "version_id": 9})
        assert resp.status_code == 400

        assert client.get("/api/products?status=SOLD").status_code == 400


class TestMiscApi:
    def test_dashboard(self, client, db_session, staff, product):
        client.post("/api/sales", json=_sale_body(staff, product, quantity=1))

        resp = client.get("/api/dashboard/stats")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["sales"]["daily_sales_count"] == 1
        assert body["stock"]["total_quantity"] == 9

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["checks"]["database"]["status"] == "healthy"

    def test_unknown_route_is_json(self, client, db_session):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"

        resp = client.patch("/api/sales")
        assert resp.status_code == 405

    def test_cors_for_known_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:4200"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:4200"

        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
