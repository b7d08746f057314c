"""
Modèles du paiement:
- Order: commande créée côté serveur (immuable hors transitions de statut backend/admin).
- PaymentSession: session éphémère chez le prestataire, liée 1:1 à la commande.
- ProviderResult: issue du widget hébergé (success / failed / cancelled / timeout).
- PaymentState + événements: machine à états de l'orchestrateur.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

class Order(BaseModel):
    id: str
    order_number: Optional[str] = None
    status: str = "pending"
    total_amount: Optional[float] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is not None:
                data["id"] = str(data["id"])
            if data.get("order_number") is not None:
                data["order_number"] = str(data["order_number"])
        return data

class PaymentSession(BaseModel):
    provider_order_id: str
    amount: float
    currency: str = "INR"
    key_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_backend(cls, data):
        # Réponse backend: {order_id | razorpay_order_id, amount, currency, razorpay_key_id}
        if isinstance(data, dict) and "provider_order_id" not in data:
            data = {
                "provider_order_id": data.get("razorpay_order_id") or data.get("order_id"),
                "amount": data.get("amount") or 0,
                "currency": data.get("currency") or "INR",
                "key_id": data.get("razorpay_key_id") or data.get("key_id"),
            }
        return data

SUCCESS = "success"
FAILED = "failed"
CANCELLED = "cancelled"
TIMEOUT = "timeout"

@dataclass(frozen=True)
class ProviderResult:
    status: str
    provider_order_id: Optional[str] = None
    provider_payment_id: Optional[str] = None
    signature: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS

    @property
    def cancelled(self) -> bool:
        # Le délai du prestataire expiré vaut abandon
        return self.status in (CANCELLED, TIMEOUT)

class PaymentState(str, Enum):
    IDLE = "idle"
    ORDER_CREATED = "order_created"
    PAYMENT_ORDER_CREATED = "payment_order_created"
    AWAITING_PROVIDER_RESULT = "awaiting_provider_result"
    VERIFIED = "verified"
    FAILED = "failed"
    CANCELLED = "cancelled"

# Événements de la machine à états
ORDER_CREATED = "OrderCreated"
PROVIDER_SESSION_CREATED = "ProviderSessionCreated"
CHECKOUT_OPENED = "CheckoutOpened"
PROVIDER_SUCCEEDED = "ProviderSucceeded"
PROVIDER_FAILED = "ProviderFailed"
PROVIDER_CANCELLED = "ProviderCancelled"
PAYMENT_VERIFIED = "PaymentVerified"
VERIFICATION_FAILED = "VerificationFailed"

@dataclass(frozen=True)
class PaymentEvent:
    name: str
    order_id: Optional[str] = None
    detail: Optional[str] = None
