# storefront.config
from pathlib import Path
import os
import logging
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du client boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise l'URL de l'API REST et le timeout HTTP
- Expose les clés de stockage local (panier anonyme, jetons d'auth)
- Regroupe les constantes du tunnel de commande (livraison, paiement, taxes, promo)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# API REST: l'URL peut parfois être fournie sans schéma, on préfixe en http:// si nécessaire
API_BASE_URL = _clean_env(
    os.getenv("STOREFRONT_API_BASE_URL")
    or os.getenv("REACT_APP_API_BASE_URL")
    or "http://localhost:8000/api/v1"
)
if API_BASE_URL and not API_BASE_URL.startswith("http"):
    API_BASE_URL = "http://" + API_BASE_URL
if API_BASE_URL.endswith("/"):
    API_BASE_URL = API_BASE_URL.rstrip("/")

HTTP_TIMEOUT = _float_env("STOREFRONT_HTTP_TIMEOUT", 10.0)

# Stockage client (équivalent localStorage): fichier JSON si renseigné, sinon mémoire
STORAGE_PATH = _clean_env(os.getenv("STOREFRONT_STORAGE_PATH") or "")
LOCAL_CART_KEY = "local_cart"
AUTH_TOKENS_KEY = "auth_tokens"

# Carnet d'adresses: délai avant relecture (réplicas en retard côté backend)
ADDRESS_REFRESH_DELAY = _float_env("ADDRESS_REFRESH_DELAY", 0.5)
POSTAL_CODE_COUNTRY = "India"

# Livraison (agrégateur): code postal d'enlèvement et poids par défaut (kg)
PICKUP_POSTCODE = _clean_env(os.getenv("PICKUP_POSTCODE") or "400001")
DEFAULT_PACKAGE_WEIGHT = 0.5

# Paiement: widget hébergé du prestataire
PAYMENT_PROVIDER_KEY_ID = _clean_env(os.getenv("RAZORPAY_KEY_ID") or "")
PAYMENT_TIMEOUT_SECONDS = 300
PROVIDER_RETRY_MAX = 3
DEFAULT_PAYMENT_METHOD = "upi"
PAYMENT_METHODS = ["upi", "credit_card", "debit_card", "wallet", "netbanking"]
STORE_NAME = _clean_env(os.getenv("STORE_NAME") or "EssenceCraft")

# Totaux du checkout
TAX_RATE = 0.08
FREE_SHIPPING_THRESHOLD = 50.0
FLAT_SHIPPING_FEE = 5.99
PROMO_CODE = "WELCOME10"
PROMO_RATE = 0.10

def configure_logging(level: str | None = None) -> None:
    """Configuration minimale du logging pour les scripts (la librairie n'installe aucun handler)."""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
