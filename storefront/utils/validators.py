import re
from typing import Any, Dict, Optional, Tuple

from storefront.config import POSTAL_CODE_COUNTRY

class ValidationError(Exception):
    def __init__(self, message: str, code: str = "invalid", errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.code = code
        self.errors = errors or {}

def validate_password_strength(v: str) -> str:
    if len(v or "") < 8:
        raise ValueError('Le mot de passe doit contenir au moins 8 caractères')
    if not re.search(r'[A-Z]', v):
        raise ValueError('Le mot de passe doit contenir au moins une majuscule')
    if not re.search(r'[a-z]', v):
        raise ValueError('Le mot de passe doit contenir au moins une minuscule')
    if not re.search(r'\d', v):
        raise ValueError('Le mot de passe doit contenir au moins un chiffre')
    return v

def validate_quantity(quantity: Any) -> int:
    """Quantité de panier: entier strictement positif (les booléens sont refusés)."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("La quantité doit être un entier positif", code="invalid_quantity")
    return quantity

def validate_address(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Dict[str, str]]:
    """
    Pré-contrôle d'une adresse avant envoi (le serveur reste l'autorité):
    - street_address: au moins 5 caractères
    - city / state: requis (au moins 2 caractères)
    - postal_code: requis; 6 chiffres quand le pays est POSTAL_CODE_COUNTRY
    partial=True: seuls les champs présents dans data sont contrôlés (mise à jour partielle).
    Retour: (is_valid, errors) avec errors = {champ: message}
    """
    errors: Dict[str, str] = {}
    street = str(data.get("street_address") or "").strip()
    city = str(data.get("city") or "").strip()
    state = str(data.get("state") or "").strip()
    postal_code = str(data.get("postal_code") or "").strip()

    if len(street) < 5:
        errors["street_address"] = "L'adresse doit contenir au moins 5 caractères"
    if len(city) < 2:
        errors["city"] = "La ville est requise"
    if len(state) < 2:
        errors["state"] = "L'état / la région est requis"
    if not postal_code:
        errors["postal_code"] = "Le code postal est requis"
    elif data.get("country") == POSTAL_CODE_COUNTRY and not re.fullmatch(r"\d{6}", postal_code):
        errors["postal_code"] = "Le code postal doit contenir 6 chiffres"

    if partial:
        errors = {k: v for k, v in errors.items() if k in data}
    return (not errors, errors)
