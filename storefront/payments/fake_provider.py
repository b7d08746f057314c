"""
Faux prestataire de paiement configurable (développement et tests).

Simule le widget sans appel externe: chaque ouverture consomme l'issue suivante de la file
(ou l'issue par défaut). En cas de succès, la signature suit le schéma du prestataire:
HMAC-SHA256(secret, "<provider_order_id>|<provider_payment_id>").
"""
import hashlib
import hmac
from typing import Any, Dict, List, Optional
from uuid import uuid4

from storefront.payments.models import CANCELLED, FAILED, SUCCESS, TIMEOUT, ProviderResult
from storefront.payments.provider import PaymentProvider

def sign(secret: str, provider_order_id: str, provider_payment_id: str) -> str:
    message = f"{provider_order_id}|{provider_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

class FakePaymentProvider(PaymentProvider):
    def __init__(self, secret: str = "test_secret", outcome: str = SUCCESS):
        self.secret = secret
        self.outcome = outcome
        self.queue: List[str] = []
        self.tamper_signature = False
        self.failure_reason = "Paiement refusé"
        self.calls: List[Dict[str, Any]] = []

    def configure(self, outcome: str, failure_reason: Optional[str] = None, tamper_signature: bool = False) -> None:
        self.outcome = outcome
        self.tamper_signature = tamper_signature
        if failure_reason:
            self.failure_reason = failure_reason

    def enqueue(self, *outcomes: str) -> None:
        self.queue.extend(outcomes)

    def open_checkout(self, options: Dict[str, Any]) -> ProviderResult:
        self.calls.append(dict(options))
        outcome = self.queue.pop(0) if self.queue else self.outcome
        provider_order_id = options.get("order_id")
        if outcome == SUCCESS:
            payment_id = f"pay_{uuid4().hex[:14]}"
            signature = sign(self.secret, provider_order_id or "", payment_id)
            if self.tamper_signature:
                signature = "0" * len(signature)
            return ProviderResult(SUCCESS, provider_order_id, payment_id, signature)
        if outcome == FAILED:
            return ProviderResult(FAILED, provider_order_id, error=self.failure_reason)
        if outcome == TIMEOUT:
            return ProviderResult(TIMEOUT, provider_order_id, error="Délai de paiement expiré")
        return ProviderResult(CANCELLED, provider_order_id, error="Paiement annulé")
