"""
Réconciliation du panier anonyme vers le panier du compte, juste après la connexion.
- Ajouts séquentiels (le backend fusionne les quantités par produit: pas d'appels parallèles).
- Un échec par ligne est loggé puis ignoré; le blob local n'est conservé que si tout a échoué.
- Le blob est supprimé dès qu'un ajout a réussi: un second appel ne renvoie donc rien.
"""
from typing import Any, Dict, Optional
import logging

from storefront.cart import repository
from storefront.cart.models import REMOTE, Cart
from storefront.cart.store import LocalCartStore

logger = logging.getLogger(__name__)

EMPTY = "empty"
SYNCED = "synced"
FAILED = "failed"

def sync_local_cart_to_backend(local_store: LocalCartStore, token: str) -> Dict[str, Any]:
    """
    Pousse chaque ligne du panier local vers POST /cart/items puis relit le panier distant.
    Retour: {status: empty|synced|failed, synced: int, failed: [product_id], cart: Cart|None}
    """
    items = local_store.read_items()
    if not items:
        local_store.delete_blob()
        return {"status": EMPTY, "synced": 0, "failed": [], "cart": None}

    synced = 0
    failed = []
    for item in items:
        try:
            repository.add_item(token, item.product_id, item.quantity)
            synced += 1
        except Exception:
            logger.exception("cart.sync.add_item failed product_id=%s", item.product_id)
            failed.append(item.product_id)

    if not synced:
        logger.warning("cart.sync: aucun article synchronisé, panier local conservé (%s lignes)", len(items))
        return {"status": FAILED, "synced": 0, "failed": failed, "cart": None}

    local_store.delete_blob()
    cart: Optional[Cart] = None
    try:
        data = repository.get_cart(token)
        cart = Cart.model_validate({"items": (data or {}).get("items") or [], "mode": REMOTE})
    except Exception:
        logger.exception("cart.sync.get_cart failed after sync")
    logger.info("cart.sync: %s ligne(s) synchronisée(s), %s en échec", synced, len(failed))
    return {"status": SYNCED, "synced": synced, "failed": failed, "cart": cart}
