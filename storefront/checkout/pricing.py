"""
Totaux du checkout: sous-total, livraison, taxe, remise promo, total.
- Taxe forfaitaire TAX_RATE sur le sous-total.
- Livraison offerte au-delà de FREE_SHIPPING_THRESHOLD (strictement), sinon FLAT_SHIPPING_FEE,
  remplacée par le tarif du transporteur quand il a été choisi.
- Code promo unique PROMO_CODE: PROMO_RATE du sous-total.
"""
from typing import Any, Dict, Optional

from storefront.cart.models import Cart
from storefront.config import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, PROMO_CODE, PROMO_RATE, TAX_RATE

def is_valid_promo(code: Optional[str]) -> bool:
    return (code or "").strip().upper() == PROMO_CODE

def shipping_fee(subtotal: float, courier_cost: Optional[float] = None) -> float:
    if courier_cost is not None:
        return float(courier_cost)
    return 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE

def compute_totals(cart: Cart, promo_applied: bool = False, courier_cost: Optional[float] = None) -> Dict[str, Any]:
    if cart.is_empty:
        return {"subtotal": 0.0, "shipping": 0.0, "tax": 0.0, "discount": 0.0, "total": 0.0, "item_count": 0}
    subtotal = cart.subtotal
    shipping = shipping_fee(subtotal, courier_cost)
    tax = subtotal * TAX_RATE
    discount = subtotal * PROMO_RATE if promo_applied else 0.0
    return {
        "subtotal": round(subtotal, 2),
        "shipping": round(shipping, 2),
        "tax": round(tax, 2),
        "discount": round(discount, 2),
        "total": round(subtotal + shipping + tax - discount, 2),
        "item_count": cart.item_count,
    }

def amount_to_free_shipping(subtotal: float) -> float:
    return round(max(FREE_SHIPPING_THRESHOLD - subtotal, 0.0), 2)
