# catalog_bot/models.py
# ------------------------------------------------------------
# Product: catalog entry managed from WhatsApp (price as Decimal, never float)
# MessageLog: one row per inbound message and the reply we produced
# ------------------------------------------------------------
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.types import TypeDecorator

from catalog_bot.database import Base


class ExactDecimal(TypeDecorator):
    """
    Decimal column with no precision limit.
    Postgres keeps it as an unconstrained NUMERIC; other backends (SQLite has no
    decimal type and would go through float) store the plain decimal text.
    """
    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(asdecimal=True))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value)
        if dialect.name == "postgresql":
            return value
        return format(value, "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class Product(Base):
    """
    Item a seller publishes over WhatsApp.
    - image_url stays NULL between the first save and the image download
    - only rows with image_url set and available=True are shown to catalog readers
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(ExactDecimal(), nullable=False)
    category = Column(String(255))
    whatsapp_number = Column(String(64))
    image_url = Column(String(1024), nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    stock = Column(Integer, nullable=False, default=1)

    @property
    def visible(self) -> bool:
        return self.image_url is not None and bool(self.available)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"


class MessageLog(Base):
    __tablename__ = "message_logs"

    id = Column(Integer, primary_key=True, index=True)
    sender = Column(String(64), index=True)
    message = Column(Text)
    response = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self) -> str:
        return f"<MessageLog id={self.id} sender={self.sender!r}>"
