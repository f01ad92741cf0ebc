# catalog_bot/repository.py
# ------------------------------------------------------------
# Narrow persistence adapters used by the dialog and the webhook
# - ProductRepository: save / find_by_id / find_all / delete (+ find_visible for readers)
# - MessageLogRepository: stores each inbound message with its reply
# Each call opens its own session, so instances are safe to share across request threads.
# ------------------------------------------------------------
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from catalog_bot.models import MessageLog, Product

logger = logging.getLogger(__name__)


class ProductRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def save(self, product: Product) -> Product:
        """Insert a new product or update an existing one; returns the persisted instance."""
        with self._session_factory() as db:
            try:
                saved = db.merge(product)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise
            logger.info(f"Product #{saved.id} saved")
            return saved

    def find_by_id(self, product_id: int) -> Optional[Product]:
        with self._session_factory() as db:
            return db.get(Product, product_id)

    def find_all(self) -> List[Product]:
        with self._session_factory() as db:
            return db.query(Product).order_by(Product.id).all()

    def find_visible(self) -> List[Product]:
        with self._session_factory() as db:
            return (
                db.query(Product)
                .filter(Product.image_url.isnot(None), Product.available.is_(True))
                .order_by(Product.id)
                .all()
            )

    def delete(self, product: Product) -> None:
        with self._session_factory() as db:
            try:
                existing = db.get(Product, product.id)
                if existing is not None:
                    db.delete(existing)
                    db.commit()
                    logger.info(f"Product #{product.id} deleted")
            except SQLAlchemyError:
                db.rollback()
                raise


class MessageLogRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def record(self, sender: str, message: str, response: str) -> None:
        with self._session_factory() as db:
            try:
                entry = MessageLog(sender=sender, message=message, response=response)
                db.add(entry)
                db.commit()
                logger.info(f"Message log #{entry.id} stored in database")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error storing message log in database: {e}")

    def for_sender(self, sender: str) -> List[MessageLog]:
        with self._session_factory() as db:
            return (
                db.query(MessageLog)
                .filter(MessageLog.sender == sender)
                .order_by(MessageLog.id)
                .all()
            )
