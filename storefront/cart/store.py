"""
Stratégies de stockage du panier: une interface, deux implémentations.
- LocalCartStore: visiteur anonyme, un blob JSON unique dans le stockage local (lecture-modification-écriture).
- RemoteCartStore: utilisateur connecté, chaque opération est déléguée au backend.
Le choix est fait une seule fois par session (select_cart_store), pas à chaque appel.
"""
from abc import ABC, abstractmethod
import json
import logging
from typing import Any, Dict, List, Optional

from storefront.auth.session import AuthSession
from storefront.cart import repository
from storefront.cart.models import LOCAL, REMOTE, Cart, CartItem, Product
from storefront.config import LOCAL_CART_KEY
from storefront.infra.storage import LocalStorage, get_storage
from storefront.utils.validators import validate_quantity

logger = logging.getLogger(__name__)

def aggregate_lines(raw_items: List[Dict[str, Any]]) -> List[CartItem]:
    """
    Agrège un blob brut [{product_id, quantity, product}, ...] en lignes uniques par product_id.
    - Ignore les lignes invalides (product_id vide, quantity <= 0 ou non entière).
    - Conserve le premier instantané produit rencontré.
    """
    lines: Dict[str, CartItem] = {}
    for it in raw_items or []:
        if not isinstance(it, dict):
            continue
        product_id = str(it.get("product_id") or "").strip()
        try:
            qty = int(it.get("quantity") or 0)
        except (TypeError, ValueError):
            qty = 0
        if not product_id or qty <= 0:
            continue
        if product_id in lines:
            lines[product_id].quantity += qty
            continue
        product = it.get("product") or {}
        lines[product_id] = CartItem(
            id=product_id,
            product_id=product_id,
            quantity=qty,
            product=Product.model_validate({"id": product_id, **product}),
        )
    return list(lines.values())

class CartStore(ABC):
    mode: str = ""

    @abstractmethod
    def get_cart(self) -> Cart:
        ...

    @abstractmethod
    def add_item(self, product_id: str, quantity: int = 1, product: Optional[Dict[str, Any]] = None) -> None:
        ...

    @abstractmethod
    def update_item(self, item_id: str, quantity: int) -> None:
        ...

    @abstractmethod
    def remove_item(self, item_id: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

class LocalCartStore(CartStore):
    mode = LOCAL

    def __init__(self, storage: Optional[LocalStorage] = None, key: str = LOCAL_CART_KEY):
        self.storage = storage or get_storage()
        self.key = key

    def has_blob(self) -> bool:
        return self.storage.get_item(self.key) is not None

    def read_items(self) -> List[CartItem]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("cart.store: blob local illisible key=%s", self.key)
            return []
        return aggregate_lines((data or {}).get("items") if isinstance(data, dict) else [])

    def write_items(self, items: List[CartItem]) -> None:
        blob = {"items": [i.model_dump(exclude={"id"}) for i in items]}
        self.storage.set_item(self.key, json.dumps(blob))

    def delete_blob(self) -> None:
        self.storage.remove_item(self.key)

    def get_cart(self) -> Cart:
        return Cart(items=self.read_items(), mode=LOCAL)

    def add_item(self, product_id: str, quantity: int = 1, product: Optional[Dict[str, Any]] = None) -> None:
        validate_quantity(quantity)
        product_id = str(product_id)
        items = self.read_items()
        existing = next((i for i in items if i.product_id == product_id), None)
        if existing:
            existing.quantity += quantity
        else:
            items.append(CartItem(
                id=product_id,
                product_id=product_id,
                quantity=quantity,
                product=Product.model_validate({"id": product_id, **(product or {})}),
            ))
        self.write_items(items)

    def update_item(self, item_id: str, quantity: int) -> None:
        # En local, l'identifiant de ligne est le product_id; une quantité <= 0 retire la ligne
        if isinstance(quantity, int) and not isinstance(quantity, bool) and quantity <= 0:
            return self.remove_item(item_id)
        validate_quantity(quantity)
        items = self.read_items()
        for item in items:
            if item.product_id == str(item_id):
                item.quantity = quantity
        self.write_items(items)

    def remove_item(self, item_id: str) -> None:
        items = [i for i in self.read_items() if i.product_id != str(item_id)]
        self.write_items(items)

    def clear(self) -> None:
        self.delete_blob()

    def enrich_prices(self, products_by_id: Dict[str, Dict[str, Any]]) -> Cart:
        """Complète les instantanés produit (prix à 0, nom vide) à partir du catalogue."""
        items = self.read_items()
        changed = False
        for item in items:
            fresh = products_by_id.get(item.product_id)
            if not fresh:
                continue
            merged = {**item.product.model_dump(), **{k: v for k, v in fresh.items() if v is not None}}
            item.product = Product.model_validate({**merged, "id": item.product_id})
            changed = True
        if changed:
            self.write_items(items)
        return Cart(items=items, mode=LOCAL)

class RemoteCartStore(CartStore):
    mode = REMOTE

    def __init__(self, session: AuthSession):
        self.session = session

    def get_cart(self) -> Cart:
        data = repository.get_cart(self.session.require_token())
        return Cart.model_validate({"items": (data or {}).get("items") or [], "mode": REMOTE})

    def add_item(self, product_id: str, quantity: int = 1, product: Optional[Dict[str, Any]] = None) -> None:
        validate_quantity(quantity)
        repository.add_item(self.session.require_token(), str(product_id), quantity)

    def update_item(self, item_id: str, quantity: int) -> None:
        validate_quantity(quantity)
        repository.update_item(self.session.require_token(), str(item_id), quantity)

    def remove_item(self, item_id: str) -> None:
        repository.remove_item(self.session.require_token(), str(item_id))

    def clear(self) -> None:
        repository.clear_cart(self.session.require_token())

def select_cart_store(session: AuthSession, storage: Optional[LocalStorage] = None) -> CartStore:
    """Jeton présent -> panier distant, sinon panier local."""
    if session.is_authenticated:
        return RemoteCartStore(session)
    return LocalCartStore(storage or session.storage)
