"""
Proxy backend de l'agrégateur de livraison (/shipping/...).
Toutes les routes sont authentifiées (Bearer); les erreurs remontent en ApiError.
"""
from typing import Any, Dict, List, Optional
import storefront.infra.api_client as api_client

# module storefront.shipping.repository
def check_serviceability(token: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """GET /shipping/serviceability: {pickup_postcode, delivery_postcode, weight, cod, declared_value}."""
    return api_client.get_api_client().get("/shipping/serviceability", token=token, auth_required=True, params=params) or {}

def create_order(token: str, order_data: Dict[str, Any]) -> Dict[str, Any]:
    return api_client.get_api_client().post("/shipping/orders", token=token, auth_required=True, json=order_data)

def get_order(token: str, order_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"/shipping/orders/{order_id}", token=token, auth_required=True)

def cancel_orders(token: str, order_ids: List[str]) -> Any:
    return api_client.get_api_client().post("/shipping/orders/cancel", token=token, auth_required=True, json={"order_ids": order_ids})

def get_couriers(token: str) -> Any:
    return api_client.get_api_client().get("/shipping/couriers", token=token, auth_required=True)

def create_shipment(token: str, shipment_data: Dict[str, Any]) -> Dict[str, Any]:
    return api_client.get_api_client().post("/shipping/shipments", token=token, auth_required=True, json=shipment_data)

def schedule_pickup(token: str, shipment_id: str) -> Any:
    return api_client.get_api_client().post(f"/shipping/shipments/{shipment_id}/pickup", token=token, auth_required=True)

def generate_manifest(token: str, shipment_ids: List[str]) -> Any:
    return api_client.get_api_client().post("/shipping/manifest", token=token, auth_required=True, json={"shipment_ids": shipment_ids})

def generate_label(token: str, shipment_ids: List[str]) -> Any:
    return api_client.get_api_client().post("/shipping/label", token=token, auth_required=True, json={"shipment_ids": shipment_ids})

def generate_invoice(token: str, order_ids: List[str]) -> Any:
    return api_client.get_api_client().post("/shipping/invoice", token=token, auth_required=True, json={"order_ids": order_ids})

def track_by_shipment_id(token: str, shipment_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"/shipping/track/shipment/{shipment_id}", token=token, auth_required=True)

def track_by_awb(token: str, awb_code: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"/shipping/track/awb/{awb_code}", token=token, auth_required=True)

def user_shipments(token: str, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Dict[str, Any]:
    params = {"page": page, "limit": limit, "status": status}
    return api_client.get_api_client().get("/shipping/shipments", token=token, auth_required=True, params=params) or {}
