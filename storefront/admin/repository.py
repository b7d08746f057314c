"""
Routes back-office (/admin/...): jeton administrateur requis (Bearer ou token_type fourni).
"""
from typing import Any, Dict, Optional
import storefront.infra.api_client as api_client

def _call(method: str, path: str, token: str, token_type: str = "Bearer", **kwargs) -> Any:
    return api_client.get_api_client().request(method, path, token=token, token_type=token_type, auth_required=True, **kwargs)

# module storefront.admin.repository
def fetch_orders(token: str, token_type: str = "Bearer", params: Optional[Dict[str, Any]] = None) -> Any:
    return _call("GET", "/admin/orders", token, token_type, params=params or None)

def update_order_status(token: str, order_id: str, status: str, token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("PUT", f"/admin/orders/{order_id}/status", token, token_type, json={"status": status})

def fetch_products(token: str, token_type: str = "Bearer", params: Optional[Dict[str, Any]] = None) -> Any:
    return _call("GET", "/admin/products", token, token_type, params=params or None)

def create_product(token: str, data: Dict[str, Any], token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("POST", "/admin/products", token, token_type, json=data)

def update_product(token: str, product_id: str, data: Dict[str, Any], token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("PUT", f"/admin/products/{product_id}", token, token_type, json=data)

def delete_product(token: str, product_id: str, token_type: str = "Bearer") -> Any:
    return _call("DELETE", f"/admin/products/{product_id}", token, token_type)

def fetch_users(token: str, token_type: str = "Bearer", params: Optional[Dict[str, Any]] = None) -> Any:
    return _call("GET", "/admin/users", token, token_type, params=params or None)

def get_user(token: str, user_id: str, token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("GET", f"/admin/users/{user_id}", token, token_type)

def make_user_admin(token: str, email: str, token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("POST", "/admin/users/make-admin", token, token_type, json={"email": email})

def fetch_analytics(token: str, token_type: str = "Bearer") -> Dict[str, Any]:
    return _call("GET", "/admin/analytics", token, token_type)
