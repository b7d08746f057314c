"""
Accès au catalogue produits (API REST publique, sans authentification).
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import storefront.infra.api_client as api_client

logger = logging.getLogger(__name__)

# module storefront.products.repository
def list_products(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> Any:
    """
    GET /products avec filtres optionnels (les valeurs vides ne sont pas envoyées).
    Retour brut du backend: liste ou {items|products, total, page, ...}.
    """
    params = {
        "page": page or None,
        "limit": limit or None,
        "search": (search or "").strip() or None,
        "min_price": min_price or None,
        "max_price": max_price or None,
    }
    return api_client.get_api_client().get("/products", params=params)

def get_product(product_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"/products/{product_id}")

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: produit} à partir d'une liste d'IDs.
    - Un produit introuvable est ignoré (loggé), sans faire échouer les autres.
    """
    products: Dict[str, Dict[str, Any]] = {}
    for product_id in dict.fromkeys(str(i) for i in ids if i):
        try:
            products[product_id] = get_product(product_id)
        except Exception:
            logger.exception("products.repository.get_products_map failed id=%s", product_id)
    return products
