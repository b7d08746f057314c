"""
Cas d'usage 'cart': état du panier exposé à l'interface (cart, error, loading).
Le magasin (local ou distant) est choisi selon la session et rechoisi uniquement
lors d'un changement d'état connecté/anonyme observé sur la session.
"""
from typing import Any, Dict, Optional
import logging

from storefront.auth.session import AuthSession
from storefront.cart.models import LOCAL, REMOTE, Cart
from storefront.cart.store import CartStore, LocalCartStore, select_cart_store
from storefront.cart import sync
from storefront.infra.storage import LocalStorage
from storefront.products import repository as products_repository
from storefront.utils.results import ActionResult, handle_exception
from storefront.utils.validators import ValidationError

logger = logging.getLogger(__name__)

class CartProvider:
    def __init__(self, session: AuthSession, storage: Optional[LocalStorage] = None, auto_sync: bool = True):
        self.session = session
        self.storage = storage or session.storage
        self.store: CartStore = select_cart_store(session, self.storage)
        self.cart = Cart(mode=self.store.mode)
        self.error: Optional[str] = None
        self.loading = False
        self.last_sync: Optional[Dict[str, Any]] = None
        self._unsubscribe = session.subscribe(self.on_auth_changed) if auto_sync else None

    @property
    def mode(self) -> str:
        return self.store.mode

    def close(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _local_store(self) -> LocalCartStore:
        return LocalCartStore(self.storage)

    # --- Lecture ---

    def fetch_cart(self) -> ActionResult:
        self.loading = True
        try:
            self.cart = self.store.get_cart()
            self.error = None
            return ActionResult(True, data=self.cart)
        except Exception as e:
            res = handle_exception("fetch_cart", e)
            self.error = res.error
            return res
        finally:
            self.loading = False

    # --- Mutations: écriture puis relecture, état précédent conservé en cas d'échec ---

    def _mutate(self, action: str, op, *args, **kwargs) -> ActionResult:
        try:
            op(*args, **kwargs)
        except ValidationError as e:
            self.error = str(e)
            return ActionResult(False, error=str(e))
        except Exception as e:
            res = handle_exception(action, e)
            self.error = res.error
            return res
        return self.fetch_cart()

    def add_item(self, product_id: str, quantity: int = 1, product: Optional[Dict[str, Any]] = None) -> ActionResult:
        return self._mutate("add_item", self.store.add_item, product_id, quantity, product)

    def update_item(self, item_id: str, quantity: int) -> ActionResult:
        if self.mode == REMOTE and isinstance(quantity, int) and not isinstance(quantity, bool) and quantity <= 0:
            return self.remove_item(item_id)
        return self._mutate("update_item", self.store.update_item, item_id, quantity)

    def remove_item(self, item_id: str) -> ActionResult:
        return self._mutate("remove_item", self.store.remove_item, item_id)

    def clear_cart(self) -> ActionResult:
        res = self._mutate("clear_cart", self.store.clear)
        if res.success:
            self.cart = Cart(mode=self.mode)
        return res

    def totals(self) -> Dict[str, Any]:
        return self.cart.totals()

    def enrich_local_prices(self) -> ActionResult:
        """Panier anonyme: complète les prix/noms à 0 depuis le catalogue (les erreurs par produit sont ignorées)."""
        if self.mode != LOCAL:
            return ActionResult(True, data=self.cart)
        store = self.store
        ids = [i.product_id for i in store.read_items() if i.product.price <= 0 or not i.product.name]
        if not ids:
            return ActionResult(True, data=self.cart)
        try:
            products = products_repository.get_products_map(ids)
            self.cart = store.enrich_prices(products)
            return ActionResult(True, data=self.cart)
        except Exception as e:
            return handle_exception("enrich_local_prices", e)

    # --- Réconciliation ---

    def sync_local_cart_to_backend(self) -> ActionResult:
        if not self.session.is_authenticated:
            return ActionResult(False, error="Non authentifié")
        try:
            result = sync.sync_local_cart_to_backend(self._local_store(), self.session.require_token())
        except Exception as e:
            return handle_exception("sync_local_cart_to_backend", e)
        self.last_sync = result
        self.store = select_cart_store(self.session, self.storage)
        if result["cart"] is not None:
            self.cart = result["cart"]
            self.error = None
        else:
            self.fetch_cart()
        if result["status"] == sync.FAILED:
            self.error = "Erreur sync_local_cart_to_backend: aucun article n'a pu être synchronisé"
            return ActionResult(False, data=result, error=self.error)
        return ActionResult(True, data=result)

    def on_auth_changed(self, session: AuthSession) -> None:
        """Anonyme -> connecté: une seule réconciliation; connecté -> anonyme: retour au panier local."""
        if session.is_authenticated and self.mode == LOCAL:
            self.sync_local_cart_to_backend()
        elif not session.is_authenticated and self.mode == REMOTE:
            self.store = select_cart_store(session, self.storage)
            self.cart = Cart(mode=LOCAL)
            self.fetch_cart()
