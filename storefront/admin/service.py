# module storefront.admin.service

from typing import Any, Dict, List, Optional
import logging

from storefront.admin import repository as admin_repository
from storefront.auth.service import is_admin
from storefront.auth.session import AuthSession
from storefront.utils.results import ActionResult, handle_exception

logger = logging.getLogger(__name__)

ORDER_STATUSES = ["pending", "processing", "shipped", "delivered", "cancelled", "refunded"]

def _require_admin(session: AuthSession) -> Optional[ActionResult]:
    if not session.is_authenticated:
        return ActionResult(False, error="Non authentifié")
    if session.user is not None and not is_admin(session.user):
        return ActionResult(False, error="Accès réservé aux administrateurs")
    return None

def _run(action: str, session: AuthSession, fn, *args, **kwargs) -> ActionResult:
    denied = _require_admin(session)
    if denied:
        return denied
    try:
        return ActionResult(True, data=fn(session.require_token(), *args, token_type=session.token_type, **kwargs))
    except Exception as e:
        return handle_exception(action, e)

def list_orders(session: AuthSession, params: Optional[Dict[str, Any]] = None) -> ActionResult:
    return _run("admin_list_orders", session, admin_repository.fetch_orders, params=params)

def filter_orders_by_status(session: AuthSession, status: str) -> ActionResult:
    return list_orders(session, {"status": status})

def update_order_status(session: AuthSession, order_id: str, status: str) -> ActionResult:
    if status not in ORDER_STATUSES:
        return ActionResult(False, error=f"Statut de commande invalide: {status}")
    return _run("admin_update_order_status", session, admin_repository.update_order_status, str(order_id), status)

def order_stats(orders: List[Dict[str, Any]]) -> Dict[str, int]:
    """Comptage par statut (les statuts inconnus ne comptent que dans le total)."""
    stats = {"total": len(orders)}
    stats.update({s: 0 for s in ORDER_STATUSES})
    for order in orders:
        status = order.get("status")
        if status in stats and status != "total":
            stats[status] += 1
    return stats

def list_products(session: AuthSession, params: Optional[Dict[str, Any]] = None) -> ActionResult:
    return _run("admin_list_products", session, admin_repository.fetch_products, params=params)

def create_product(session: AuthSession, data: Dict[str, Any]) -> ActionResult:
    if not (data.get("name") or "").strip():
        return ActionResult(False, error="Le nom du produit est requis")
    return _run("admin_create_product", session, admin_repository.create_product, data)

def update_product(session: AuthSession, product_id: str, data: Dict[str, Any]) -> ActionResult:
    return _run("admin_update_product", session, admin_repository.update_product, str(product_id), data)

def delete_product(session: AuthSession, product_id: str) -> ActionResult:
    return _run("admin_delete_product", session, admin_repository.delete_product, str(product_id))

def list_users(session: AuthSession, params: Optional[Dict[str, Any]] = None) -> ActionResult:
    return _run("admin_list_users", session, admin_repository.fetch_users, params=params)

def get_user(session: AuthSession, user_id: str) -> ActionResult:
    return _run("admin_get_user", session, admin_repository.get_user, str(user_id))

def make_user_admin(session: AuthSession, email: str) -> ActionResult:
    email = (email or "").strip()
    if not email:
        return ActionResult(False, error="Email requis")
    return _run("admin_make_user_admin", session, admin_repository.make_user_admin, email)

def get_analytics(session: AuthSession) -> ActionResult:
    return _run("admin_get_analytics", session, admin_repository.fetch_analytics)
