"""
Cas d'usage 'orders': historique des commandes, annulation, suivi des expéditions.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from storefront.auth.session import AuthSession
from storefront.orders import repository
from storefront.payments.models import Order
from storefront.shipping import repository as shipping_repository
from storefront.shipping.models import Shipment
from storefront.shipping.tracking import normalize_history, status_label, status_position
from storefront.utils.results import ActionResult, handle_exception

logger = logging.getLogger(__name__)

def _orders_from(raw: Any) -> List[Order]:
    items = raw if isinstance(raw, list) else (raw or {}).get("items") or (raw or {}).get("orders") or []
    return [Order.model_validate(o) for o in items]

def list_orders(session: AuthSession, page: Optional[int] = None, limit: Optional[int] = None, status: Optional[str] = None) -> ActionResult:
    try:
        return ActionResult(True, data=_orders_from(repository.list_orders(session.require_token(), page, limit, status)))
    except Exception as e:
        return handle_exception("list_orders", e)

def get_order(session: AuthSession, order_id: str) -> ActionResult:
    try:
        return ActionResult(True, data=Order.model_validate(repository.get_order(session.require_token(), str(order_id))))
    except Exception as e:
        return handle_exception("get_order", e)

def cancel_order(session: AuthSession, order_id: str) -> ActionResult:
    try:
        raw = repository.cancel_order(session.require_token(), str(order_id))
        return ActionResult(True, data=Order.model_validate(raw) if raw else None)
    except Exception as e:
        return handle_exception("cancel_order", e)

def tracking_view(data: Dict[str, Any]) -> Dict[str, Any]:
    """Vue de suivi: statut courant, position dans la frise, libellé et historique trié (plus récent d'abord)."""
    data = data or {}
    shipment = Shipment.model_validate({
        "shipment_id": data.get("shipment_id"),
        "awb_code": data.get("awb_code"),
        "courier_name": data.get("courier_name"),
        "status": data.get("status") or data.get("current_status") or "pending",
    })
    return {
        "shipment": shipment,
        "status": shipment.status,
        "position": status_position(shipment.status),
        "label": status_label(shipment.status),
        "history": normalize_history(data.get("tracking_history") or data.get("tracking_data") or []),
    }

class OrderTracker:
    """Suivi d'une expédition: par identifiant d'expédition en priorité, sinon par code AWB."""

    def __init__(self, session: AuthSession, shipment_id: Optional[str] = None, awb_code: Optional[str] = None):
        self.session = session
        self.shipment_id = shipment_id
        self.awb_code = awb_code
        self.tracking: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self.loading = False
        self.last_updated: Optional[datetime] = None

    def refresh(self) -> Optional[ActionResult]:
        if not self.shipment_id and not self.awb_code:
            return None
        self.loading = True
        self.error = None
        try:
            token = self.session.require_token()
            if self.shipment_id:
                raw = shipping_repository.track_by_shipment_id(token, str(self.shipment_id))
            else:
                raw = shipping_repository.track_by_awb(token, str(self.awb_code))
            self.tracking = tracking_view((raw or {}).get("data") or raw)
            self.last_updated = datetime.now()
            return ActionResult(True, data=self.tracking)
        except Exception as e:
            res = handle_exception("track_shipment", e)
            self.error = res.error
            return res
        finally:
            self.loading = False

def track_shipment(session: AuthSession, shipment_id: Optional[str] = None, awb_code: Optional[str] = None) -> Optional[ActionResult]:
    return OrderTracker(session, shipment_id, awb_code).refresh()

def _parse_shipments(raw: Any, page: int, limit: int):
    """Corps {data: {shipments, page, ...}}, {shipments, ...} ou liste nue (une seule page)."""
    if isinstance(raw, list):
        return [Shipment.model_validate(s) for s in raw], {"page": 1, "limit": limit, "total": len(raw), "total_pages": 1 if raw else 0}
    raw = raw or {}
    data = raw.get("data") if isinstance(raw.get("data"), dict) else raw
    shipments = [Shipment.model_validate(s) for s in data.get("shipments") or []]
    return shipments, {
        "page": int(data.get("page") or page),
        "limit": int(data.get("limit") or limit),
        "total": int(data.get("total") or len(shipments)),
        "total_pages": int(data.get("total_pages") or data.get("totalPages") or 0),
    }

class ShipmentList:
    """Expéditions de l'utilisateur, paginées {page, limit, total, total_pages}."""

    def __init__(self, session: AuthSession, limit: int = 10):
        self.session = session
        self.shipments: List[Shipment] = []
        self.pagination = {"page": 1, "limit": limit, "total": 0, "total_pages": 0}
        self.error: Optional[str] = None

    def fetch(self, page: int = 1, limit: Optional[int] = None) -> ActionResult:
        limit = limit or self.pagination["limit"]
        try:
            raw = shipping_repository.user_shipments(self.session.require_token(), page, limit)
            shipments, pagination = _parse_shipments(raw, page, limit)
        except Exception as e:
            res = handle_exception("user_shipments", e)
            self.error = res.error
            return res
        self.shipments = shipments
        self.pagination = pagination
        self.error = None
        return ActionResult(True, data=list(self.shipments))

    def next_page(self) -> Optional[ActionResult]:
        if self.pagination["page"] < self.pagination["total_pages"]:
            return self.fetch(self.pagination["page"] + 1)
        return None

    def prev_page(self) -> Optional[ActionResult]:
        if self.pagination["page"] > 1:
            return self.fetch(self.pagination["page"] - 1)
        return None

    def go_to_page(self, page: int) -> Optional[ActionResult]:
        if 1 <= page <= self.pagination["total_pages"]:
            return self.fetch(page)
        return None
