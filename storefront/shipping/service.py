"""
Cas d'usage 'shipping':
- ShippingOptionResolver: éligibilité des transporteurs pour une adresse et un poids, choix du transporteur.
- ShippingService: opérations de l'agrégateur (commande, expédition, enlèvement, documents).
"""
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from storefront.auth.session import AuthSession
from storefront.cart.models import Cart
from storefront.config import DEFAULT_PACKAGE_WEIGHT, PICKUP_POSTCODE
from storefront.shipping import repository
from storefront.shipping.models import CourierOption
from storefront.utils.results import ActionResult, handle_exception

logger = logging.getLogger(__name__)

def package_weight(cart: Cart, default: float = DEFAULT_PACKAGE_WEIGHT) -> float:
    """Poids du colis (kg): somme des poids produits renseignés, sinon le poids par défaut."""
    total = sum((item.product.weight or 0) * item.quantity for item in cart.items)
    return round(total, 3) if total > 0 else default

def extract_courier_options(data: Dict[str, Any]) -> List[CourierOption]:
    # Réponse de l'agrégateur: {data: {available_courier_companies: [...]}} ou la liste à plat
    body = data or {}
    companies = (body.get("data") or {}).get("available_courier_companies")
    if companies is None:
        companies = body.get("available_courier_companies") or []
    return [CourierOption.model_validate(c) for c in companies]

class ShippingOptionResolver:
    def __init__(self, session: AuthSession, pickup_postcode: Optional[str] = None):
        self.session = session
        self.pickup_postcode = pickup_postcode or PICKUP_POSTCODE
        self.reset()

    def reset(self) -> None:
        self.options: List[CourierOption] = []
        self.selected: Optional[CourierOption] = None
        self.shipping_cost: Optional[float] = None
        self.no_service = False
        self.checked = False
        self.is_cod = False
        self.error: Optional[str] = None
        self.loading = False

    def check_serviceability(
        self,
        destination_postal_code: Optional[str],
        weight: Optional[float],
        origin_postal_code: Optional[str] = None,
        is_cod: bool = False,
        declared_value: float = 0,
    ) -> ActionResult:
        """
        Interroge l'agrégateur pour la destination donnée.
        - destination et poids sont obligatoires: ValueError sinon (contrat appelant, aucun appel réseau).
        - Une seule option: sélection automatique et coût renseigné.
        - Liste vide: état no_service (succès, pas une erreur).
        """
        if not destination_postal_code:
            raise ValueError("Code postal de destination requis")
        if not weight:
            raise ValueError("Poids du colis requis")

        params = {
            "pickup_postcode": origin_postal_code or self.pickup_postcode,
            "delivery_postcode": str(destination_postal_code),
            "weight": weight,
            "cod": 1 if is_cod else 0,
            "declared_value": declared_value,
        }
        self.reset()
        self.is_cod = is_cod
        self.loading = True
        try:
            data = repository.check_serviceability(self.session.require_token(), params)
            self.options = extract_courier_options(data)
        except Exception as e:
            res = handle_exception("check_serviceability", e)
            self.error = res.error
            return res
        finally:
            self.loading = False

        self.checked = True
        self.no_service = not self.options
        if len(self.options) == 1:
            self.select_courier(self.options[0])
        return ActionResult(True, data=list(self.options))

    def select_courier(self, courier: Union[CourierOption, str]) -> Optional[CourierOption]:
        if isinstance(courier, CourierOption):
            chosen = courier
        else:
            chosen = next((o for o in self.options if o.courier_company_id == str(courier)), None)
        if chosen is None:
            logger.warning("shipping.select_courier: transporteur inconnu id=%s", courier)
            return None
        self.selected = chosen
        self.shipping_cost = chosen.total_charge(self.is_cod)
        return chosen

class ShippingService:
    """Opérations de l'agrégateur; chaque appel passe par handle_request (error/loading)."""

    def __init__(self, session: AuthSession):
        self.session = session
        self.error: Optional[str] = None
        self.loading = False

    def handle_request(self, action: str, fn: Callable[..., Any], *args) -> ActionResult:
        self.loading = True
        self.error = None
        try:
            return ActionResult(True, data=fn(self.session.require_token(), *args))
        except Exception as e:
            res = handle_exception(action, e)
            self.error = res.error
            return res
        finally:
            self.loading = False

    def create_order(self, order_data: Dict[str, Any]) -> ActionResult:
        return self.handle_request("create_shipping_order", repository.create_order, order_data)

    def get_order(self, order_id: str) -> ActionResult:
        return self.handle_request("get_shipping_order", repository.get_order, order_id)

    def cancel_orders(self, order_ids: List[str]) -> ActionResult:
        return self.handle_request("cancel_shipping_orders", repository.cancel_orders, list(order_ids))

    def get_couriers(self) -> ActionResult:
        return self.handle_request("get_couriers", repository.get_couriers)

    def create_shipment(self, shipment_data: Dict[str, Any]) -> ActionResult:
        return self.handle_request("create_shipment", repository.create_shipment, shipment_data)

    def schedule_pickup(self, shipment_id: str) -> ActionResult:
        return self.handle_request("schedule_pickup", repository.schedule_pickup, shipment_id)

    def generate_manifest(self, shipment_ids: List[str]) -> ActionResult:
        return self.handle_request("generate_manifest", repository.generate_manifest, list(shipment_ids))

    def generate_label(self, shipment_ids: List[str]) -> ActionResult:
        return self.handle_request("generate_label", repository.generate_label, list(shipment_ids))

    def generate_invoice(self, order_ids: List[str]) -> ActionResult:
        return self.handle_request("generate_invoice", repository.generate_invoice, list(order_ids))
