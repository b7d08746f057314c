"""
Accès aux commandes de l'utilisateur connecté (/orders).
"""
from typing import Any, Dict, Optional
import storefront.infra.api_client as api_client

# module storefront.orders.repository
def list_orders(token: str, page: Optional[int] = None, limit: Optional[int] = None, status: Optional[str] = None) -> Any:
    params = {"page": page, "limit": limit, "status": status}
    return api_client.get_api_client().get("/orders", token=token, auth_required=True, params=params) or []

def get_order(token: str, order_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"/orders/{order_id}", token=token, auth_required=True)

def cancel_order(token: str, order_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().put(f"/orders/{order_id}/cancel", token=token, auth_required=True)
