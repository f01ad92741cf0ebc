# catalog_bot/schemas.py
# Response models for the read-only catalog endpoint.
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    category: Optional[str] = None
    whatsapp_number: Optional[str] = None
    image_url: str
    available: bool
    stock: int
