"""
Cas d'usage 'checkout': assemble panier, carnet d'adresses, transporteurs et paiement.
Tout est injecté explicitement (session, panier, adresses, orchestrateur); rien n'est lu
depuis un état global, ce qui permet de dérouler le parcours sans interface.
"""
from typing import Any, Dict, Optional
import logging

from storefront.addresses.service import AddressDirectory
from storefront.auth import service as auth_service
from storefront.auth.session import AuthSession
from storefront.cart.service import CartProvider
from storefront.checkout.controller import CheckoutController, CheckoutStep
from storefront.checkout.pricing import compute_totals, is_valid_promo
from storefront.config import DEFAULT_PAYMENT_METHOD, PAYMENT_METHODS
from storefront.payments.models import Order, PaymentState
from storefront.payments.orchestrator import PaymentOrchestrator
from storefront.payments.provider import PaymentProvider
from storefront.shipping.service import ShippingOptionResolver, package_weight
from storefront.utils.results import ActionResult

logger = logging.getLogger(__name__)

class CheckoutFlow:
    def __init__(
        self,
        session: AuthSession,
        cart: Optional[CartProvider] = None,
        addresses: Optional[AddressDirectory] = None,
        shipping: Optional[ShippingOptionResolver] = None,
        orchestrator: Optional[PaymentOrchestrator] = None,
        provider: Optional[PaymentProvider] = None,
    ):
        self.session = session
        self.cart = cart or CartProvider(session)
        self.addresses = addresses or AddressDirectory(session)
        self.shipping = shipping or ShippingOptionResolver(session)
        self.orchestrator = orchestrator or PaymentOrchestrator(session, provider=provider)
        self.controller = CheckoutController(
            has_items=lambda: not self.cart.cart.is_empty,
            selected_address_id=lambda: self.addresses.selected_address_id,
            payment_verified=lambda: self.orchestrator.state == PaymentState.VERIFIED,
        )
        self.orchestrator.on_verified(self._on_payment_verified)
        self.promo_applied = False
        self.payment_method = DEFAULT_PAYMENT_METHOD
        self.confirmed_order: Optional[Order] = None
        self.error: Optional[str] = None

    @property
    def step(self) -> CheckoutStep:
        return self.controller.step

    def load(self) -> ActionResult:
        """Charge le panier, le profil (préremplissage du paiement) puis les adresses."""
        res = self.cart.fetch_cart()
        if not res.success:
            return res
        if self.session.user is None:
            profile = auth_service.get_user_details(self.session)
            if not profile.success:
                logger.warning("checkout.load: profil indisponible error=%s", profile.error)
        return self.addresses.list()

    # --- Promo / totaux ---

    def apply_promo(self, code: str) -> ActionResult:
        if not is_valid_promo(code):
            return ActionResult(False, error="Code promo invalide")
        self.promo_applied = True
        return ActionResult(True, data=self.totals())

    def remove_promo(self) -> None:
        self.promo_applied = False

    def totals(self) -> Dict[str, Any]:
        return compute_totals(self.cart.cart, self.promo_applied, self.shipping.shipping_cost)

    # --- Étapes ---

    def next(self) -> ActionResult:
        return self.controller.next()

    def back(self) -> ActionResult:
        return self.controller.back()

    def select_address(self, address_id: Optional[str]) -> None:
        self.addresses.select(address_id)
        self.shipping.reset()

    def select_payment_method(self, method: str) -> ActionResult:
        if method not in PAYMENT_METHODS:
            return ActionResult(False, error=f"Moyen de paiement inconnu: {method}")
        self.payment_method = method
        return ActionResult(True, data=method)

    def resolve_shipping(self, is_cod: bool = False) -> ActionResult:
        """Éligibilité transporteurs pour l'adresse sélectionnée; rien n'est demandé sans adresse ni poids."""
        address = self.addresses.selected_address()
        if address is None or not address.postal_code:
            return ActionResult(False, error="Veuillez sélectionner une adresse de livraison")
        if self.cart.cart.is_empty:
            return ActionResult(False, error="Votre panier est vide")
        return self.shipping.check_serviceability(
            destination_postal_code=address.postal_code,
            weight=package_weight(self.cart.cart),
            is_cod=is_cod,
            declared_value=round(self.cart.cart.subtotal, 2),
        )

    # --- Paiement ---

    def place_order(self, user: Optional[Dict[str, Any]] = None, method: Optional[str] = None) -> ActionResult:
        """
        Lance (ou relance) le paiement depuis l'étape payment.
        - Après un échec/abandon, réutilise la commande existante (retry), sans en créer une nouvelle.
        - Le panier n'est vidé et la confirmation atteinte qu'après vérification backend.
        """
        if self.step != CheckoutStep.PAYMENT:
            return ActionResult(False, error="Le paiement n'est possible qu'à l'étape paiement")
        if self.addresses.selected_address_id is None:
            return ActionResult(False, error="Veuillez sélectionner une adresse de livraison")
        method = method or self.payment_method
        user = user or self.session.user
        if self.orchestrator.can_retry:
            res = self.orchestrator.retry_payment(self.orchestrator.order.id, method, user)
        else:
            res = self.orchestrator.checkout(self.addresses.selected_address_id, self.cart.cart.items, method, user)
        self.error = None if res.success else res.error
        return res

    def retry_payment(self, user: Optional[Dict[str, Any]] = None, method: Optional[str] = None) -> ActionResult:
        if not self.orchestrator.can_retry:
            return ActionResult(False, error="Aucun paiement à relancer")
        res = self.orchestrator.retry_payment(self.orchestrator.order.id, method or self.payment_method, user or self.session.user)
        self.error = None if res.success else res.error
        return res

    def _on_payment_verified(self, order: Order, verification: Dict[str, Any]) -> None:
        self.confirmed_order = order
        res = self.cart.clear_cart()
        if not res.success:
            logger.warning("checkout: panier non vidé après paiement order_id=%s error=%s", order.id, res.error)
        self.controller.next()
