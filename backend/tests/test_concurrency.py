# Overview: Threaded concurrency tests for sale writes against a file-backed SQLite database.

"""
Concurrent sale writes must never oversell and never lose a stock update.

Each worker thread gets its own app context (and so its own session and
connection) against a temporary SQLite file.
"""
import os
import tempfile
import threading
import unittest

from stockdesk import create_app
from stockdesk.errors import InsufficientStockError
from stockdesk.extensions import db
from stockdesk.models import Product, Sale, Staff
from stockdesk.services import sales_service
from stockdesk.services.stock_service import derive_status
from stockdesk.validation import CreateSaleInput


class ConcurrentSaleTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
            "TX_RETRY_ATTEMPTS": 10,
            "TX_RETRY_BACKOFF_SECONDS": 0.01,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            staff = Staff(employee_id="EMP-C1", first_name="Concurrent", last_name="Clerk")
            db.session.add(staff)
            product = Product(
                sku="CONCUR-1",
                name="Concurrent Product",
                category="Feed",
                quantity=5,
                min_stock=2,
                price_per_unit_cents=1000,
                status=derive_status(5, 2),
            )
            db.session.add(product)
            db.session.commit()
            self.staff_id = staff.id
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _sale(self, quantity=1):
        return CreateSaleInput(
            staff_id=self.staff_id,
            product_id=self.product_id,
            quantity=quantity,
            unit_price_cents=1000,
            payment_method="CASH",
        )

    def _run_workers(self, target, count):
        threads = [threading.Thread(target=target) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def test_concurrent_sales_never_oversell(self):
        results = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    sales_service.create_sale(self._sale())
                    with lock:
                        results.append("sold")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        self._run_workers(worker, 10)

        sold = [r for r in results if r == "sold"]
        rejected = [r for r in results if isinstance(r, InsufficientStockError)]
        self.assertEqual(len(sold), 5)
        self.assertEqual(len(rejected), 5)

        with self.app.app_context():
            product = db.session.get(Product, self.product_id)
            self.assertEqual(product.quantity, 0)
            self.assertEqual(product.status, "OUT_OF_STOCK")
            self.assertEqual(db.session.query(Sale).count(), 5)

    def test_concurrent_create_and_delete_restores_stock(self):
        errors = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    sale = sales_service.create_sale(self._sale())
                    sales_service.delete_sale(sale["id"])
                except InsufficientStockError:
                    # Another worker holds the last units right now
                    pass
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        self._run_workers(worker, 8)

        self.assertFalse(errors)
        with self.app.app_context():
            product = db.session.get(Product, self.product_id)
            self.assertEqual(product.quantity, 5)
            self.assertEqual(db.session.query(Sale).count(), 0)
