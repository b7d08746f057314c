"""
Module 'payments' (feature-first): point d'entrée public.
Réunit modèles, port du prestataire, repository REST et orchestrateur.
"""

from .models import Order, PaymentSession, PaymentState, ProviderResult
from .provider import PaymentProvider, build_checkout_options, get_provider, set_provider, reset_provider
from .fake_provider import FakePaymentProvider
from .orchestrator import InvalidTransition, PaymentOrchestrator

__all__ = [
    # modèles
    "Order",
    "PaymentSession",
    "PaymentState",
    "ProviderResult",
    # prestataire
    "PaymentProvider",
    "FakePaymentProvider",
    "build_checkout_options",
    "get_provider",
    "set_provider",
    "reset_provider",
    # orchestration
    "InvalidTransition",
    "PaymentOrchestrator",
]
