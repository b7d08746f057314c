"""Client headless de la boutique (panier, adresses, livraison, paiement, back-office)."""

__version__ = "1.0.0"
