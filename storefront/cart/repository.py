"""
Accès au panier distant (/cart) pour un utilisateur authentifié (Bearer).
Toutes les fonctions lèvent ApiError / NotAuthenticatedError: c'est au service de convertir.
"""
from typing import Any, Dict
import storefront.infra.api_client as api_client

# module storefront.cart.repository
def get_cart(token: str) -> Dict[str, Any]:
    return api_client.get_api_client().get("/cart", token=token, auth_required=True) or {"items": []}

def add_item(token: str, product_id: str, quantity: int = 1) -> Any:
    """POST /cart/items: le backend fusionne la quantité si le produit est déjà présent."""
    payload = {"product_id": product_id, "quantity": quantity}
    return api_client.get_api_client().post("/cart/items", token=token, auth_required=True, json=payload)

def update_item(token: str, item_id: str, quantity: int) -> Any:
    return api_client.get_api_client().put(f"/cart/items/{item_id}", token=token, auth_required=True, json={"quantity": quantity})

def remove_item(token: str, item_id: str) -> Any:
    return api_client.get_api_client().delete(f"/cart/items/{item_id}", token=token, auth_required=True)

def clear_cart(token: str) -> Any:
    return api_client.get_api_client().delete("/cart", token=token, auth_required=True)
