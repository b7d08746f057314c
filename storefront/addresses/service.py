"""
Carnet d'adresses de l'utilisateur connecté.
Rôles:
- CRUD + adresse par défaut (unicité par type garantie par le serveur, reflétée ici).
- Pré-validation locale avant tout envoi (validate_address).
- Après chaque mutation: courte attente puis relecture complète de la liste (pas de fusion optimiste).
- Sélection pour le checkout: adresse par défaut, sinon la première, sinon None.
"""
from typing import Any, Callable, Dict, List, Optional
import logging
import time

from pydantic import ValidationError as PydanticValidationError

from storefront.addresses import repository
from storefront.addresses.models import BILLING, SHIPPING, Address
from storefront.auth.session import AuthSession
from storefront.config import ADDRESS_REFRESH_DELAY
from storefront.utils.results import ActionResult, handle_exception
from storefront.utils.validators import validate_address

logger = logging.getLogger(__name__)

def parse_address(raw: Any) -> Any:
    """Adresse complète si le corps en est une, sinon le corps brut (ex: {"message": ...})."""
    if not isinstance(raw, dict) or not raw.get("id"):
        return raw
    try:
        return Address.model_validate(raw)
    except PydanticValidationError:
        logger.warning("addresses.parse_address: réponse partielle id=%s", raw.get("id"))
        return raw

def pick_default_address(addresses: List[Address]) -> Optional[Address]:
    """Adresse de livraison par défaut, sinon toute adresse par défaut, sinon la première."""
    if not addresses:
        return None
    for candidate in addresses:
        if candidate.is_default and candidate.address_type == SHIPPING:
            return candidate
    for candidate in addresses:
        if candidate.is_default:
            return candidate
    return addresses[0]

class AddressDirectory:
    def __init__(
        self,
        session: AuthSession,
        refresh_delay: Optional[float] = None,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.session = session
        self.refresh_delay = ADDRESS_REFRESH_DELAY if refresh_delay is None else refresh_delay
        self._sleep = sleep
        self.addresses: List[Address] = []
        self.selected_address_id: Optional[str] = None
        self.statistics_data: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.loading = False

    # --- Vues dérivées ---

    @property
    def shipping_addresses(self) -> List[Address]:
        return [a for a in self.addresses if a.address_type == SHIPPING]

    @property
    def billing_addresses(self) -> List[Address]:
        return [a for a in self.addresses if a.address_type == BILLING]

    @property
    def default_shipping(self) -> Optional[Address]:
        return next((a for a in self.shipping_addresses if a.is_default), None)

    @property
    def default_billing(self) -> Optional[Address]:
        return next((a for a in self.billing_addresses if a.is_default), None)

    def has_addresses(self) -> bool:
        return bool(self.addresses)

    def has_default(self, address_type: str) -> bool:
        if address_type == SHIPPING:
            return self.default_shipping is not None
        if address_type == BILLING:
            return self.default_billing is not None
        return False

    def find(self, address_id: Optional[str]) -> Optional[Address]:
        if not address_id:
            return None
        return next((a for a in self.addresses if a.id == str(address_id)), None)

    # --- Sélection ---

    def select(self, address_id: Optional[str]) -> None:
        self.selected_address_id = str(address_id) if address_id else None

    def selected_address(self) -> Optional[Address]:
        return self.find(self.selected_address_id)

    def _apply_selection(self) -> None:
        if self.find(self.selected_address_id):
            return
        chosen = pick_default_address(self.addresses)
        self.selected_address_id = chosen.id if chosen else None

    # --- Lecture ---

    def list(self, address_type: Optional[str] = None) -> ActionResult:
        self.loading = True
        try:
            raw = repository.list_addresses(self.session.require_token(), address_type)
            self.addresses = [Address.model_validate(a) for a in raw]
            self._apply_selection()
            self.error = None
            return ActionResult(True, data=list(self.addresses))
        except Exception as e:
            res = handle_exception("list_addresses", e)
            self.error = res.error
            return res
        finally:
            self.loading = False

    def get(self, address_id: str) -> ActionResult:
        try:
            return ActionResult(True, data=Address.model_validate(repository.get_address(self.session.require_token(), address_id)))
        except Exception as e:
            res = handle_exception("get_address", e)
            self.error = res.error
            return res

    def fetch_default(self, address_type: str = SHIPPING) -> ActionResult:
        """Adresse par défaut d'un type; data=None quand aucune n'est définie (404)."""
        try:
            raw = repository.fetch_default(self.session.require_token(), address_type)
            return ActionResult(True, data=Address.model_validate(raw) if raw else None)
        except Exception as e:
            return handle_exception("fetch_default_address", e)

    def statistics(self) -> ActionResult:
        try:
            self.statistics_data = repository.statistics(self.session.require_token())
            return ActionResult(True, data=self.statistics_data)
        except Exception as e:
            return handle_exception("address_statistics", e)

    # --- Mutations ---

    def _refresh(self) -> None:
        if self.refresh_delay:
            self._sleep(self.refresh_delay)
        res = self.list()
        if not res.success:
            logger.warning("addresses.refresh failed error=%s", res.error)

    def _invalid(self, errors: Dict[str, str]) -> ActionResult:
        self.error = "Adresse invalide"
        return ActionResult(False, data=errors, error=self.error)

    def create(self, data: Dict[str, Any]) -> ActionResult:
        is_valid, errors = validate_address(data)
        if not is_valid:
            return self._invalid(errors)
        try:
            created = repository.create_address(self.session.require_token(), data)
        except Exception as e:
            res = handle_exception("create_address", e)
            self.error = res.error
            return res
        self._refresh()
        return ActionResult(True, data=parse_address(created))

    def update(self, address_id: str, data: Dict[str, Any]) -> ActionResult:
        current = self.find(address_id)
        if current is None:
            # liste non chargée: seuls les champs envoyés sont contrôlés
            is_valid, errors = validate_address(data, partial=True)
        else:
            is_valid, errors = validate_address({**current.model_dump(), **data})
        if not is_valid:
            return self._invalid(errors)
        try:
            updated = repository.update_address(self.session.require_token(), str(address_id), data)
        except Exception as e:
            res = handle_exception("update_address", e)
            self.error = res.error
            return res
        self._refresh()
        return ActionResult(True, data=parse_address(updated))

    def delete(self, address_id: str) -> ActionResult:
        try:
            repository.delete_address(self.session.require_token(), str(address_id))
        except Exception as e:
            res = handle_exception("delete_address", e)
            self.error = res.error
            return res
        if self.selected_address_id == str(address_id):
            self.selected_address_id = None
        self._refresh()
        return ActionResult(True)

    def set_default(self, address_id: str) -> ActionResult:
        try:
            updated = repository.set_default(self.session.require_token(), str(address_id))
        except Exception as e:
            res = handle_exception("set_default_address", e)
            self.error = res.error
            return res
        self._refresh()
        return ActionResult(True, data=parse_address(updated))

    def reset(self) -> None:
        self.addresses = []
        self.selected_address_id = None
        self.statistics_data = None
        self.error = None
        self.loading = False
