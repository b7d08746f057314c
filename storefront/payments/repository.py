"""
Accès aux routes commandes/paiements du backend (Bearer).
Le backend signe et vérifie les paiements; ce module ne fait que transmettre.
"""
from typing import Any, Dict, List, Optional
import storefront.infra.api_client as api_client

# module storefront.payments.repository
def create_order(token: str, shipping_address_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    payload = {"shipping_address_id": shipping_address_id, "items": items}
    return api_client.get_api_client().post("/orders", token=token, auth_required=True, json=payload)

def create_payment_order(token: str, order_id: str, payment_method: str) -> Dict[str, Any]:
    payload = {"order_id": order_id, "payment_method": payment_method}
    return api_client.get_api_client().post("/payments/create-order", token=token, auth_required=True, json=payload)

def verify_payment(token: str, provider_order_id: str, provider_payment_id: str, signature: str, order_id: str) -> Dict[str, Any]:
    payload = {
        "razorpay_order_id": provider_order_id,
        "razorpay_payment_id": provider_payment_id,
        "razorpay_signature": signature,
        "order_id": order_id,
    }
    return api_client.get_api_client().post("/payments/verify", token=token, auth_required=True, json=payload)

def record_payment_failure(token: str, order_id: str, reason: Optional[str]) -> Any:
    payload = {"order_id": order_id, "reason": reason or ""}
    return api_client.get_api_client().post("/payments/failure", token=token, auth_required=True, json=payload)

def retry_payment(token: str, order_id: str, payment_method: str) -> Dict[str, Any]:
    return api_client.get_api_client().post(
        f"/payments/retry/{order_id}", token=token, auth_required=True, json={"payment_method": payment_method}
    )
