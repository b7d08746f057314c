"""
Assistant de checkout linéaire: cart -> address -> payment -> confirmation.
Avance uniquement d'une étape à la fois, sous garde; retour arrière explicite via back().
"""
from enum import Enum
from typing import Callable, Dict, Optional
import logging

from storefront.utils.results import ActionResult

logger = logging.getLogger(__name__)

class CheckoutStep(str, Enum):
    CART = "cart"
    ADDRESS = "address"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"

ORDER = [CheckoutStep.CART, CheckoutStep.ADDRESS, CheckoutStep.PAYMENT, CheckoutStep.CONFIRMATION]

GUARD_ERRORS = {
    CheckoutStep.CART: "Votre panier est vide",
    CheckoutStep.ADDRESS: "Veuillez sélectionner une adresse de livraison",
    CheckoutStep.PAYMENT: "Le paiement n'a pas été vérifié",
}

class CheckoutController:
    """
    Gardes (évaluées au moment de la transition):
    - cart -> address: au moins un article
    - address -> payment: une adresse sélectionnée
    - payment -> confirmation: paiement vérifié par le backend
    """

    def __init__(
        self,
        has_items: Callable[[], bool],
        selected_address_id: Callable[[], Optional[str]],
        payment_verified: Callable[[], bool],
    ):
        self.step = CheckoutStep.CART
        self._guards: Dict[CheckoutStep, Callable[[], bool]] = {
            CheckoutStep.CART: lambda: bool(has_items()),
            CheckoutStep.ADDRESS: lambda: selected_address_id() is not None,
            CheckoutStep.PAYMENT: lambda: bool(payment_verified()),
        }

    @property
    def index(self) -> int:
        return ORDER.index(self.step)

    @property
    def is_complete(self) -> bool:
        return self.step == CheckoutStep.CONFIRMATION

    def can_advance(self) -> bool:
        guard = self._guards.get(self.step)
        return bool(guard and guard())

    def next(self) -> ActionResult:
        if self.is_complete:
            return ActionResult(False, error="Commande déjà confirmée")
        if not self.can_advance():
            return ActionResult(False, error=GUARD_ERRORS[self.step])
        previous = self.step
        self.step = ORDER[self.index + 1]
        logger.info("checkout.step %s -> %s", previous.value, self.step.value)
        return ActionResult(True, data=self.step)

    def back(self) -> ActionResult:
        # Pas de retour après confirmation ni avant la première étape
        if self.is_complete or self.index == 0:
            return ActionResult(False, error="Retour impossible")
        self.step = ORDER[self.index - 1]
        return ActionResult(True, data=self.step)

    def go_to(self, step: CheckoutStep) -> ActionResult:
        """Navigation directe: étapes précédentes ou l'étape suivante uniquement (pas de saut)."""
        target = CheckoutStep(step)
        position = ORDER.index(target)
        if position == self.index:
            return ActionResult(True, data=self.step)
        if position == self.index + 1:
            return self.next()
        if position < self.index and not self.is_complete:
            self.step = target
            return ActionResult(True, data=self.step)
        return ActionResult(False, error=f"Étape {target.value} inaccessible depuis {self.step.value}")

    def reset(self) -> None:
        self.step = CheckoutStep.CART
