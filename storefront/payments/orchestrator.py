"""
Orchestrateur de paiement: commande backend -> session prestataire -> widget -> vérification.

États: idle -> order_created -> payment_order_created -> awaiting_provider_result
       -> verified | failed | cancelled ; failed|cancelled -> payment_order_created (retry).
Une seule commande backend par tentative de checkout: le retry réutilise la commande existante.
Les étapes unitaires lèvent; checkout() et retry_payment() renvoient un ActionResult.
"""
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

from storefront.auth.session import AuthSession
from storefront.config import DEFAULT_PAYMENT_METHOD
from storefront.payments import repository
from storefront.payments.models import (
    CHECKOUT_OPENED,
    FAILED,
    ORDER_CREATED,
    PAYMENT_VERIFIED,
    PROVIDER_CANCELLED,
    PROVIDER_FAILED,
    PROVIDER_SESSION_CREATED,
    PROVIDER_SUCCEEDED,
    VERIFICATION_FAILED,
    Order,
    PaymentEvent,
    PaymentSession,
    PaymentState,
    ProviderResult,
)
from storefront.payments.provider import PaymentProvider, build_checkout_options, get_provider
from storefront.utils.results import ActionResult, error_message, handle_exception

logger = logging.getLogger(__name__)

S = PaymentState

TRANSITIONS = {
    (S.IDLE, ORDER_CREATED): S.ORDER_CREATED,
    (S.ORDER_CREATED, PROVIDER_SESSION_CREATED): S.PAYMENT_ORDER_CREATED,
    (S.ORDER_CREATED, PROVIDER_FAILED): S.FAILED,
    (S.PAYMENT_ORDER_CREATED, CHECKOUT_OPENED): S.AWAITING_PROVIDER_RESULT,
    (S.PAYMENT_ORDER_CREATED, PROVIDER_FAILED): S.FAILED,
    (S.AWAITING_PROVIDER_RESULT, PROVIDER_SUCCEEDED): S.AWAITING_PROVIDER_RESULT,
    (S.AWAITING_PROVIDER_RESULT, PAYMENT_VERIFIED): S.VERIFIED,
    (S.AWAITING_PROVIDER_RESULT, VERIFICATION_FAILED): S.FAILED,
    (S.AWAITING_PROVIDER_RESULT, PROVIDER_FAILED): S.FAILED,
    (S.AWAITING_PROVIDER_RESULT, PROVIDER_CANCELLED): S.CANCELLED,
    (S.FAILED, PROVIDER_SESSION_CREATED): S.PAYMENT_ORDER_CREATED,
    (S.CANCELLED, PROVIDER_SESSION_CREATED): S.PAYMENT_ORDER_CREATED,
}

class InvalidTransition(Exception):
    def __init__(self, state: PaymentState, event: str):
        super().__init__(f"Transition interdite: {event} depuis l'état {state.value}")
        self.state = state
        self.event = event

def run_in_thread(fn: Callable[[], Any]) -> None:
    threading.Thread(target=fn, name="payment-failure-report", daemon=True).start()

def order_line(item: Any) -> Dict[str, Any]:
    """Ligne de commande {product_id, variant_id, quantity, price} depuis un CartItem ou un dict."""
    if isinstance(item, dict):
        product = item.get("product") or {}
        return {
            "product_id": str(item.get("product_id") or product.get("id") or ""),
            "variant_id": item.get("variant_id"),
            "quantity": int(item.get("quantity") or 0),
            "price": float(item.get("price") or product.get("price") or 0),
        }
    return {
        "product_id": item.product_id,
        "variant_id": getattr(item, "variant_id", None),
        "quantity": item.quantity,
        "price": item.product.price,
    }

class PaymentOrchestrator:
    def __init__(
        self,
        session: AuthSession,
        provider: Optional[PaymentProvider] = None,
        run_in_background: Callable[[Callable[[], Any]], Any] = run_in_thread,
    ):
        self.session = session
        self.provider = provider or get_provider()
        self._run_in_background = run_in_background
        self._on_verified: List[Callable[[Order, Dict[str, Any]], Any]] = []
        self.reset()

    def reset(self) -> None:
        self.state = S.IDLE
        self.order: Optional[Order] = None
        self.payment_session: Optional[PaymentSession] = None
        self.last_result: Optional[ProviderResult] = None
        self.verification: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.processing = False
        self.history: List[PaymentEvent] = []

    def on_verified(self, callback: Callable[[Order, Dict[str, Any]], Any]) -> None:
        """Abonnés exécutés uniquement après vérification backend réussie (vider le panier, confirmation)."""
        self._on_verified.append(callback)

    @property
    def can_retry(self) -> bool:
        return self.order is not None and self.state in (S.FAILED, S.CANCELLED)

    def apply(self, event: str, detail: Optional[str] = None) -> PaymentState:
        target = TRANSITIONS.get((self.state, event))
        if target is None:
            raise InvalidTransition(self.state, event)
        self.history.append(PaymentEvent(event, self.order.id if self.order else None, detail))
        logger.info("payments.transition %s -> %s event=%s", self.state.value, target.value, event)
        self.state = target
        return target

    # --- Étapes ---

    def create_order(self, address_id: str, items: List[Any]) -> Order:
        """POST /orders; un échec est fatal pour la tentative (l'état reste idle)."""
        if self.state != S.IDLE:
            raise InvalidTransition(self.state, ORDER_CREATED)
        lines = [order_line(i) for i in items]
        raw = repository.create_order(self.session.require_token(), str(address_id), lines)
        self.order = Order.model_validate(raw)
        self.apply(ORDER_CREATED)
        return self.order

    def create_payment_order(self, order_id: str, method: str = DEFAULT_PAYMENT_METHOD) -> PaymentSession:
        """POST /payments/create-order pour la commande courante; rien n'est envoyé hors de l'état order_created."""
        if self.state != S.ORDER_CREATED or self.order is None or self.order.id != str(order_id):
            raise InvalidTransition(self.state, PROVIDER_SESSION_CREATED)
        try:
            raw = repository.create_payment_order(self.session.require_token(), str(order_id), method)
            payment_session = PaymentSession.model_validate(raw)
        except Exception as e:
            self.apply(PROVIDER_FAILED, error_message(e))
            raise
        self.payment_session = payment_session
        self.apply(PROVIDER_SESSION_CREATED)
        return payment_session

    def verify_payment(self, result: ProviderResult, order_id: str) -> Dict[str, Any]:
        """POST /payments/verify; le backend valide la signature avant de marquer la commande payée."""
        return repository.verify_payment(
            self.session.require_token(),
            result.provider_order_id or (self.payment_session.provider_order_id if self.payment_session else ""),
            result.provider_payment_id or "",
            result.signature or "",
            str(order_id),
        ) or {}

    def record_payment_failure(self, order_id: str, reason: Optional[str]) -> None:
        """Télémétrie d'échec en tâche de fond: ses propres erreurs sont loggées, jamais propagées."""
        token = self.session.access_token

        def _send():
            try:
                repository.record_payment_failure(token, str(order_id), reason)
            except Exception:
                logger.warning("payments.record_payment_failure failed order_id=%s", order_id, exc_info=True)

        try:
            self._run_in_background(_send)
        except Exception:
            logger.warning("payments.record_payment_failure: lancement impossible order_id=%s", order_id, exc_info=True)

    def open_provider_checkout(self, user: Optional[Dict[str, Any]] = None, description: Optional[str] = None) -> ActionResult:
        """Ouvre le widget puis traite son issue (vérification, ou échec/abandon + télémétrie)."""
        options = build_checkout_options(self.payment_session, self.order, user, description=description)
        self.apply(CHECKOUT_OPENED)
        try:
            result = self.provider.open_checkout(options)
        except Exception as e:
            logger.exception("payments.open_checkout failed order_id=%s", self.order.id)
            result = ProviderResult(FAILED, self.payment_session.provider_order_id, error=error_message(e))
        self.last_result = result

        if result.succeeded:
            self.apply(PROVIDER_SUCCEEDED)
            return self._verify(result)

        reason = result.error or ("Paiement annulé" if result.cancelled else "Paiement échoué")
        self.apply(PROVIDER_CANCELLED if result.cancelled else PROVIDER_FAILED, reason)
        self.error = reason
        self.record_payment_failure(self.order.id, reason)
        return ActionResult(False, data={"order_id": self.order.id, "state": self.state.value}, error=reason)

    def _verify(self, result: ProviderResult) -> ActionResult:
        try:
            verification = self.verify_payment(result, self.order.id)
        except Exception as e:
            logger.exception("payments.verify_payment failed order_id=%s", self.order.id)
            self.error = f"Vérification du paiement échouée: {error_message(e)}"
            self.apply(VERIFICATION_FAILED, error_message(e))
            return ActionResult(False, data={"order_id": self.order.id, "state": self.state.value}, error=self.error)

        self.verification = verification
        self.apply(PAYMENT_VERIFIED)
        self.error = None
        logger.info("payments.verified order_id=%s", self.order.id)
        for callback in list(self._on_verified):
            try:
                callback(self.order, verification)
            except Exception:
                logger.exception("payments.on_verified callback failed order_id=%s", self.order.id)
        return ActionResult(True, data={"order": self.order, "verification": verification})

    # --- Parcours complets ---

    def checkout(
        self,
        address_id: str,
        items: List[Any],
        method: str = DEFAULT_PAYMENT_METHOD,
        user: Optional[Dict[str, Any]] = None,
    ) -> ActionResult:
        self.processing = True
        self.error = None
        try:
            try:
                self.create_order(address_id, items)
            except Exception as e:
                res = handle_exception("create_order", e)
                self.error = res.error
                return res
            try:
                self.create_payment_order(self.order.id, method)
            except Exception as e:
                res = handle_exception("create_payment_order", e)
                self.error = res.error
                self.record_payment_failure(self.order.id, error_message(e))
                res.data = {"order_id": self.order.id, "state": self.state.value}
                return res
            return self.open_provider_checkout(user)
        finally:
            self.processing = False

    def retry_payment(
        self,
        order_id: str,
        method: str = DEFAULT_PAYMENT_METHOD,
        user: Optional[Dict[str, Any]] = None,
    ) -> ActionResult:
        """Nouvelle session prestataire pour la même commande (aucune nouvelle commande backend)."""
        if not self.order or self.order.id != str(order_id):
            return ActionResult(False, error="Commande inconnue pour ce paiement")
        if not self.can_retry:
            return ActionResult(False, error=f"Nouvelle tentative impossible depuis l'état {self.state.value}")
        self.processing = True
        try:
            try:
                raw = repository.retry_payment(self.session.require_token(), self.order.id, method)
                self.payment_session = PaymentSession.model_validate(raw)
            except Exception as e:
                res = handle_exception("retry_payment", e)
                self.error = res.error
                return res
            self.apply(PROVIDER_SESSION_CREATED, "retry")
            return self.open_provider_checkout(user, description=f"Retry Payment - Order #{self.order.order_number or self.order.id}")
        finally:
            self.processing = False
