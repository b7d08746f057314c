from typing import Any, Dict, List, Optional

from storefront.cart.models import Product
from storefront.products import repository
from storefront.utils.results import ActionResult, handle_exception

def normalize_listing(raw: Any, page: int, limit: int) -> Dict[str, Any]:
    """
    Normalise la réponse de GET /products en {products, page, limit, total, total_pages}.
    - Accepte une liste brute ou un objet {items|products, total, page, limit}.
    """
    if isinstance(raw, list):
        items, total = raw, len(raw)
        meta: Dict[str, Any] = {}
    else:
        meta = raw or {}
        items = meta.get("items") or meta.get("products") or []
        total = int(meta.get("total") or len(items))
    limit = int(meta.get("limit") or limit)
    return {
        "products": [Product.model_validate(p) for p in items],
        "page": int(meta.get("page") or page),
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }

def list_products(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> ActionResult:
    try:
        raw = repository.list_products(page=page, limit=limit, search=search, min_price=min_price, max_price=max_price)
        return ActionResult(True, data=normalize_listing(raw, page, limit))
    except Exception as e:
        return handle_exception("list_products", e)

def get_product(product_id: str) -> ActionResult:
    try:
        return ActionResult(True, data=Product.model_validate(repository.get_product(product_id)))
    except Exception as e:
        return handle_exception("get_product", e)

def related_products(product: Product, candidates: List[Product], limit: int = 4) -> List[Product]:
    """Produits liés: tous sauf le produit courant, dans l'ordre du catalogue."""
    return [p for p in candidates if p.id != product.id][:limit]
