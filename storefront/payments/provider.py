"""
Port du widget de paiement hébergé.

Le widget est une étape modale pilotée par l'utilisateur, hors du contrôle de ce code:
l'orchestrateur lui passe des options et reçoit un ProviderResult. get_provider()/set_provider()
permettent de remplacer l'implémentation (widget réel, faux prestataire en développement/tests).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from storefront.config import PAYMENT_PROVIDER_KEY_ID, PAYMENT_TIMEOUT_SECONDS, PROVIDER_RETRY_MAX, STORE_NAME
from storefront.payments.models import Order, PaymentSession, ProviderResult

class PaymentProvider(ABC):
    @abstractmethod
    def open_checkout(self, options: Dict[str, Any]) -> ProviderResult:
        """Ouvre le paiement et bloque jusqu'à l'issue (succès, échec, abandon, délai expiré)."""
        ...

def to_minor_units(amount: float) -> int:
    return int(round(float(amount or 0) * 100))

def build_checkout_options(
    payment_session: PaymentSession,
    order: Order,
    user: Optional[Dict[str, Any]] = None,
    description: Optional[str] = None,
    key_id: Optional[str] = None,
    store_name: Optional[str] = None,
) -> Dict[str, Any]:
    user = user or {}
    full_name = user.get("name") or f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    return {
        "key": payment_session.key_id or key_id or PAYMENT_PROVIDER_KEY_ID,
        "amount": to_minor_units(payment_session.amount),
        "currency": payment_session.currency,
        "name": store_name or STORE_NAME,
        "description": description or f"Order #{order.order_number or order.id}",
        "order_id": payment_session.provider_order_id,
        "prefill": {
            "name": full_name,
            "email": user.get("email") or "",
            "contact": user.get("phone") or "",
        },
        "notes": {"order_id": order.id, "order_number": order.order_number},
        "retry": {"enabled": True, "max_count": PROVIDER_RETRY_MAX},
        "timeout": PAYMENT_TIMEOUT_SECONDS,
    }

_current_provider: Optional[PaymentProvider] = None

def get_provider() -> PaymentProvider:
    """Prestataire courant; par défaut le faux prestataire (développement)."""
    global _current_provider
    if _current_provider is None:
        from storefront.payments.fake_provider import FakePaymentProvider
        _current_provider = FakePaymentProvider()
    return _current_provider

def set_provider(provider: PaymentProvider) -> None:
    global _current_provider
    _current_provider = provider

def reset_provider() -> None:
    global _current_provider
    _current_provider = None
