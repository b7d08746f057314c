"""
Modèles du panier (pydantic).
- Mode "local": lignes indexées par product_id (prix éventuellement à 0 tant que non enrichi).
- Mode "remote": lignes indexées par l'id attribué par le backend, prix faisant foi.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

LOCAL = "local"
REMOTE = "remote"

def _as_str(v):
    return str(v) if v is not None else v

class Product(BaseModel):
    id: str
    name: str = ""
    price: float = 0.0
    image_url: Optional[str] = None
    weight: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return _as_str(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price_default(cls, v):
        return 0.0 if v in (None, "") else v

class CartItem(BaseModel):
    id: Optional[str] = None
    product_id: str
    quantity: int = Field(ge=1)
    product: Product

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def _ids_as_str(cls, v):
        return _as_str(v)

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity

class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    mode: str = LOCAL

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_by_product(self, product_id: str) -> Optional[CartItem]:
        product_id = str(product_id)
        return next((i for i in self.items if i.product_id == product_id), None)

    def find(self, item_id: str) -> Optional[CartItem]:
        item_id = str(item_id)
        return next((i for i in self.items if (i.id or i.product_id) == item_id), None)

    def totals(self) -> dict:
        return {"subtotal": self.subtotal, "item_count": self.item_count, "items": list(self.items)}
