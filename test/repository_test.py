import os
import tempfile
import unittest
from decimal import Decimal

from catalog_bot.database import init_db, make_engine, make_session_factory
from catalog_bot.models import Product
from catalog_bot.repository import MessageLogRepository, ProductRepository


class SqliteTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.engine = make_engine(f"sqlite:///{os.path.join(self.temp_dir.name, 'catalog.db')}")
        init_db(self.engine)
        self.session_factory = make_session_factory(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()
        self.temp_dir.cleanup()


class ProductRepositoryTests(SqliteTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.repo = ProductRepository(self.session_factory)

    def new_product(self, name="Esmeralda 2ct", price="2500", image_url=None, available=True) -> Product:
        return Product(name=name, price=Decimal(price), image_url=image_url, available=available, stock=1)

    def test_save_assigns_id_then_updates_same_row(self) -> None:
        saved = self.repo.save(self.new_product())
        self.assertIsNotNone(saved.id)
        self.assertIsNone(saved.image_url)

        saved.image_url = "https://api.test/api/images/product_1_abcd1234.jpg"
        updated = self.repo.save(saved)

        self.assertEqual(updated.id, saved.id)
        self.assertEqual(len(self.repo.find_all()), 1)
        self.assertEqual(self.repo.find_by_id(saved.id).image_url, updated.image_url)

    def test_price_round_trips_as_decimal(self) -> None:
        saved = self.repo.save(self.new_product(price="3200.50"))
        price = self.repo.find_by_id(saved.id).price
        self.assertIsInstance(price, Decimal)
        self.assertEqual(price, Decimal("3200.50"))

    def test_long_prices_are_stored_exactly(self) -> None:
        for text in ("12345678901234567.89", "123456789012345678901234567890.05"):
            with self.subTest(price=text):
                saved = self.repo.save(self.new_product(price=text))
                self.assertEqual(self.repo.find_by_id(saved.id).price, Decimal(text))

    def test_defaults(self) -> None:
        saved = self.repo.save(Product(name="Anillo", price=Decimal("10")))
        found = self.repo.find_by_id(saved.id)
        self.assertTrue(found.available)
        self.assertEqual(found.stock, 1)

    def test_find_by_id_missing(self) -> None:
        self.assertIsNone(self.repo.find_by_id(404))

    def test_find_all_is_ordered_by_id(self) -> None:
        ids = [self.repo.save(self.new_product(name=n)).id for n in ("c", "a", "b")]
        self.assertEqual([p.id for p in self.repo.find_all()], sorted(ids))

    def test_find_visible_requires_image_and_availability(self) -> None:
        self.repo.save(self.new_product(name="sin imagen"))
        self.repo.save(self.new_product(name="oculto", image_url="https://x/1.jpg", available=False))
        shown = self.repo.save(self.new_product(name="visible", image_url="https://x/2.jpg"))
        visible = self.repo.find_visible()
        self.assertEqual([p.id for p in visible], [shown.id])
        self.assertTrue(visible[0].visible)

    def test_delete(self) -> None:
        saved = self.repo.save(self.new_product())
        self.repo.delete(saved)
        self.assertIsNone(self.repo.find_by_id(saved.id))
        self.repo.delete(saved)  # already gone


class MessageLogRepositoryTests(SqliteTestCase):
    def test_record_and_read_back(self) -> None:
        log = MessageLogRepository(self.session_factory)
        log.record("573001234567", "ayuda", "👋 Bienvenido")
        log.record("573001234567", "subir", "📱 Subir")
        log.record("otro", "hola", "👋")
        entries = log.for_sender("573001234567")
        self.assertEqual([e.message for e in entries], ["ayuda", "subir"])
        self.assertIsNotNone(entries[0].created_at)


if __name__ == "__main__":
    unittest.main()
