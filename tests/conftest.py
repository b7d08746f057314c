import hashlib
import hmac
import itertools
from typing import Any, Dict, List, Optional

import pytest
from fastapi import APIRouter, Body, FastAPI, Header, HTTPException
from fastapi.testclient import TestClient

import storefront.infra.api_client as api_client
from storefront.auth.session import AuthSession
from storefront.infra.storage import LocalStorage, reset_storage
from storefront.payments.provider import reset_provider

PROVIDER_SECRET = "test_secret"
PASSWORD = "Secret123"
BASE_URL = "http://testserver/api/v1"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

class FakeBackend:
    """
    Faux backend REST en mémoire (FastAPI), servi via TestClient.
    - Utilisateurs: user@example.com (u1) et admin@example.com (admin), mot de passe PASSWORD.
    - calls: journal (méthode, chemin) de chaque requête reçue.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.users: Dict[str, Dict[str, Any]] = {
            "u1": {"id": "u1", "email": "user@example.com", "first_name": "Asha", "last_name": "Rao", "phone": "9876543210", "is_admin": False},
            "admin": {"id": "admin", "email": "admin@example.com", "first_name": "Admin", "last_name": None, "is_admin": True},
        }
        self.products: Dict[str, Dict[str, Any]] = {
            "sku-1": {"id": "sku-1", "name": "Lavender Oil", "price": 12.5, "image_url": None, "weight": 0.2},
            "sku-2": {"id": "sku-2", "name": "Rose Oil", "price": 30.0, "image_url": None, "weight": 0.3},
            "sku-3": {"id": "sku-3", "name": "Jasmine Oil", "price": 45.0, "image_url": None, "weight": None},
        }
        self.carts: Dict[str, List[Dict[str, Any]]] = {}
        self.addresses: Dict[str, List[Dict[str, Any]]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.payment_orders: Dict[str, str] = {}
        self.failures: List[Dict[str, Any]] = []
        self.couriers: Dict[str, List[Dict[str, Any]]] = {
            "400001": [{"courier_company_id": 10, "courier_name": "BlueDart", "freight_charge": 49.0, "cod_charges": 15.0, "etd": "2 days", "rating": 4.5}],
            "110001": [
                {"courier_company_id": 11, "courier_name": "Delhivery", "freight_charge": 60.0, "cod_charges": 20.0},
                {"courier_company_id": 12, "courier_name": "Ekart", "freight_charge": 55.0, "cod_charges": 0},
            ],
        }
        self.shipments: Dict[str, Dict[str, Any]] = {
            "shp-1": {
                "shipment_id": "shp-1",
                "awb_code": "AWB123",
                "courier_name": "BlueDart",
                "status": "in_transit",
                "tracking_history": [
                    {"status": "pickup_completed", "activity": "Picked up", "date": "2024-05-01T10:00:00"},
                    {"status": "in_transit", "activity": "Reached hub", "location": "Pune", "date": "2024-05-02T08:30:00"},
                ],
            },
        }
        self.fail_add_for: set = set()
        self._ids = itertools.count(1)
        self.app = self._build_app()

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p in self.calls if m == method and p.endswith(path))

    # --- construction de l'application ---

    def _build_app(self) -> FastAPI:
        backend = self
        app = FastAPI()
        router = APIRouter(prefix="/api/v1")

        @app.middleware("http")
        async def _record(request, call_next):
            backend.calls.append((request.method, request.url.path))
            return await call_next(request)

        def current_user(authorization: Optional[str]) -> Dict[str, Any]:
            scheme, _, token = (authorization or "").partition(" ")
            if scheme.lower() != "bearer" or not token.startswith("tok-"):
                raise HTTPException(status_code=401, detail="Not authenticated")
            user = backend.users.get(token[len("tok-"):])
            if not user:
                raise HTTPException(status_code=401, detail="Invalid token")
            return user

        def current_admin(authorization: Optional[str]) -> Dict[str, Any]:
            user = current_user(authorization)
            if not user.get("is_admin"):
                raise HTTPException(status_code=403, detail="Admin only")
            return user

        def tokens_for(user: Dict[str, Any]) -> Dict[str, Any]:
            return {"access_token": f"tok-{user['id']}", "refresh_token": f"ref-{user['id']}", "token_type": "bearer", "user": user}

        # --- auth ---
        @router.post("/auth/login")
        def login(payload: dict = Body(...)):
            user = next((u for u in backend.users.values() if u["email"] == payload.get("email")), None)
            if not user or payload.get("password") != PASSWORD:
                raise HTTPException(status_code=401, detail="Incorrect email or password")
            return tokens_for(user)

        @router.post("/auth/register", status_code=201)
        def register(payload: dict = Body(...)):
            if any(u["email"] == payload.get("email") for u in backend.users.values()):
                raise HTTPException(status_code=400, detail="Email already registered")
            uid = backend.next_id("u")
            backend.users[uid] = {"id": uid, "email": payload["email"], "first_name": payload.get("first_name"), "last_name": payload.get("last_name"), "is_admin": False}
            return backend.users[uid]

        @router.get("/auth/me")
        def me(authorization: Optional[str] = Header(default=None)):
            return current_user(authorization)

        @router.post("/auth/refresh")
        def refresh(payload: dict = Body(...)):
            token = str(payload.get("refresh_token") or "")
            user = backend.users.get(token[len("ref-"):]) if token.startswith("ref-") else None
            if not user:
                raise HTTPException(status_code=401, detail="Invalid refresh token")
            return tokens_for(user)

        @router.post("/auth/logout")
        def logout(authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            return {"message": "Logged out"}

        @router.get("/users/me")
        def user_details(authorization: Optional[str] = Header(default=None)):
            return current_user(authorization)

        # --- produits ---
        @router.get("/products")
        def list_products(page: int = 1, limit: int = 10, search: Optional[str] = None):
            items = [p for p in backend.products.values() if not search or search.lower() in p["name"].lower()]
            start = (page - 1) * limit
            return {"items": items[start:start + limit], "total": len(items), "page": page, "limit": limit}

        @router.get("/products/{product_id}")
        def get_product(product_id: str):
            if product_id not in backend.products:
                raise HTTPException(status_code=404, detail="Product not found")
            return backend.products[product_id]

        # --- panier ---
        def cart_of(user):
            return backend.carts.setdefault(user["id"], [])

        @router.get("/cart")
        def get_cart(authorization: Optional[str] = Header(default=None)):
            return {"items": cart_of(current_user(authorization))}

        @router.post("/cart/items")
        def add_cart_item(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            items = cart_of(current_user(authorization))
            product_id = str(payload.get("product_id"))
            if product_id in backend.fail_add_for:
                raise HTTPException(status_code=500, detail="Cart service unavailable")
            if product_id not in backend.products:
                raise HTTPException(status_code=404, detail="Product not found")
            line = next((i for i in items if i["product_id"] == product_id), None)
            if line:
                line["quantity"] += int(payload.get("quantity") or 1)
            else:
                line = {"id": backend.next_id("ci"), "product_id": product_id, "quantity": int(payload.get("quantity") or 1), "product": backend.products[product_id]}
                items.append(line)
            return line

        @router.put("/cart/items/{item_id}")
        def update_cart_item(item_id: str, payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            items = cart_of(current_user(authorization))
            line = next((i for i in items if i["id"] == item_id), None)
            if not line:
                raise HTTPException(status_code=404, detail="Cart item not found")
            line["quantity"] = int(payload["quantity"])
            return line

        @router.delete("/cart/items/{item_id}", status_code=204)
        def delete_cart_item(item_id: str, authorization: Optional[str] = Header(default=None)):
            user = current_user(authorization)
            backend.carts[user["id"]] = [i for i in cart_of(user) if i["id"] != item_id]

        @router.delete("/cart", status_code=204)
        def clear_cart(authorization: Optional[str] = Header(default=None)):
            backend.carts[current_user(authorization)["id"]] = []

        # --- adresses ---
        def addresses_of(user):
            return backend.addresses.setdefault(user["id"], [])

        @router.get("/users/me/addresses")
        def list_addresses(address_type: Optional[str] = None, authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            return [a for a in items if not address_type or a["address_type"] == address_type]

        @router.get("/users/me/addresses/default/{address_type}")
        def default_address(address_type: str, authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            found = next((a for a in items if a["address_type"] == address_type and a["is_default"]), None)
            if not found:
                raise HTTPException(status_code=404, detail="No default address")
            return found

        @router.get("/users/me/addresses/{address_id}")
        def get_address(address_id: str, authorization: Optional[str] = Header(default=None)):
            found = next((a for a in addresses_of(current_user(authorization)) if a["id"] == address_id), None)
            if not found:
                raise HTTPException(status_code=404, detail="Address not found")
            return found

        def make_default(items, address):
            for a in items:
                if a["address_type"] == address["address_type"]:
                    a["is_default"] = False
            address["is_default"] = True

        @router.post("/users/me/addresses", status_code=201)
        def create_address(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            address = {"apartment": None, "country": "India", "address_type": "shipping", "is_default": False, **payload, "id": backend.next_id("addr")}
            items.append(address)
            if address["is_default"]:
                make_default(items, address)
            return address

        @router.put("/users/me/addresses/{address_id}")
        def update_address(address_id: str, payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            found = next((a for a in items if a["id"] == address_id), None)
            if not found:
                raise HTTPException(status_code=404, detail="Address not found")
            found.update({k: v for k, v in payload.items() if k != "id"})
            return found

        @router.delete("/users/me/addresses/{address_id}", status_code=204)
        def delete_address(address_id: str, authorization: Optional[str] = Header(default=None)):
            user = current_user(authorization)
            backend.addresses[user["id"]] = [a for a in addresses_of(user) if a["id"] != address_id]

        @router.post("/users/me/addresses/{address_id}/set-default")
        def set_default(address_id: str, authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            found = next((a for a in items if a["id"] == address_id), None)
            if not found:
                raise HTTPException(status_code=404, detail="Address not found")
            make_default(items, found)
            return found

        @router.get("/addresses/statistics/count")
        def address_statistics(authorization: Optional[str] = Header(default=None)):
            items = addresses_of(current_user(authorization))
            return {
                "total": len(items),
                "shipping": sum(1 for a in items if a["address_type"] == "shipping"),
                "billing": sum(1 for a in items if a["address_type"] == "billing"),
            }

        # --- livraison ---
        @router.get("/shipping/serviceability")
        def serviceability(delivery_postcode: str, pickup_postcode: str, weight: float, cod: int = 0, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            return {"status": 200, "data": {"available_courier_companies": backend.couriers.get(delivery_postcode, [])}}

        @router.get("/shipping/track/shipment/{shipment_id}")
        def track_shipment(shipment_id: str, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            if shipment_id not in backend.shipments:
                raise HTTPException(status_code=404, detail="Shipment not found")
            return {"data": backend.shipments[shipment_id]}

        @router.get("/shipping/track/awb/{awb_code}")
        def track_awb(awb_code: str, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            found = next((s for s in backend.shipments.values() if s["awb_code"] == awb_code), None)
            if not found:
                raise HTTPException(status_code=404, detail="AWB not found")
            return {"data": found}

        @router.get("/shipping/shipments")
        def user_shipments(page: int = 1, limit: int = 10, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            items = list(backend.shipments.values())
            start = (page - 1) * limit
            return {"data": {"shipments": items[start:start + limit], "page": page, "limit": limit, "total": len(items), "totalPages": (len(items) + limit - 1) // limit}}

        @router.post("/shipping/shipments/{shipment_id}/pickup")
        def schedule_pickup(shipment_id: str, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            if shipment_id not in backend.shipments:
                raise HTTPException(status_code=404, detail="Shipment not found")
            backend.shipments[shipment_id]["status"] = "pickup_scheduled"
            return {"pickup_scheduled": True, "shipment_id": shipment_id}

        # --- commandes / paiements ---
        @router.post("/orders", status_code=201)
        def create_order(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            user = current_user(authorization)
            if not payload.get("shipping_address_id"):
                raise HTTPException(status_code=422, detail="shipping_address_id required")
            lines = payload.get("items") or [
                {"product_id": i["product_id"], "quantity": i["quantity"], "price": i["product"]["price"]} for i in cart_of(user)
            ]
            if not lines:
                raise HTTPException(status_code=400, detail="Cart is empty")
            number = len(backend.orders) + 1
            order = {
                "id": backend.next_id("ord"),
                "order_number": f"ESS-{number:04d}",
                "status": "pending",
                "user_id": user["id"],
                "total_amount": round(sum(l["price"] * l["quantity"] for l in lines), 2),
                "items": lines,
            }
            backend.orders[order["id"]] = order
            return order

        @router.get("/orders")
        def list_orders(authorization: Optional[str] = Header(default=None)):
            user = current_user(authorization)
            return [o for o in backend.orders.values() if o["user_id"] == user["id"]]

        @router.get("/orders/{order_id}")
        def get_order(order_id: str, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            if order_id not in backend.orders:
                raise HTTPException(status_code=404, detail="Order not found")
            return backend.orders[order_id]

        @router.put("/orders/{order_id}/cancel")
        def cancel_order(order_id: str, authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            order = backend.orders.get(order_id)
            if not order:
                raise HTTPException(status_code=404, detail="Order not found")
            if order["status"] not in ("pending", "processing"):
                raise HTTPException(status_code=400, detail="Order cannot be cancelled")
            order["status"] = "cancelled"
            return order

        def mint_payment_order(order):
            provider_order_id = backend.next_id("order_rzp")
            backend.payment_orders[provider_order_id] = order["id"]
            return {"order_id": provider_order_id, "amount": order["total_amount"], "currency": "INR", "razorpay_key_id": "rzp_test_key"}

        @router.post("/payments/create-order")
        def create_payment_order(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            order = backend.orders.get(str(payload.get("order_id")))
            if not order:
                raise HTTPException(status_code=404, detail="Order not found")
            return mint_payment_order(order)

        @router.post("/payments/verify")
        def verify_payment(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            provider_order_id = payload.get("razorpay_order_id") or ""
            message = f"{provider_order_id}|{payload.get('razorpay_payment_id') or ''}".encode("utf-8")
            expected = hmac.new(PROVIDER_SECRET.encode("utf-8"), message, hashlib.sha256).hexdigest()
            if not hmac.compare_digest(expected, payload.get("razorpay_signature") or ""):
                raise HTTPException(status_code=400, detail="Invalid payment signature")
            if backend.payment_orders.get(provider_order_id) != payload.get("order_id"):
                raise HTTPException(status_code=400, detail="Payment does not match order")
            backend.orders[payload["order_id"]]["status"] = "processing"
            return {"success": True, "order_id": payload["order_id"], "payment_id": payload.get("razorpay_payment_id")}

        @router.post("/payments/failure")
        def payment_failure(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            backend.failures.append(payload)
            return {"recorded": True}

        @router.post("/payments/retry/{order_id}")
        def retry_payment(order_id: str, payload: dict = Body(default=None), authorization: Optional[str] = Header(default=None)):
            current_user(authorization)
            order = backend.orders.get(order_id)
            if not order:
                raise HTTPException(status_code=404, detail="Order not found")
            return mint_payment_order(order)

        # --- back-office ---
        @router.get("/admin/orders")
        def admin_orders(status: Optional[str] = None, authorization: Optional[str] = Header(default=None)):
            current_admin(authorization)
            return [o for o in backend.orders.values() if not status or o["status"] == status]

        @router.put("/admin/orders/{order_id}/status")
        def admin_order_status(order_id: str, payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            current_admin(authorization)
            if order_id not in backend.orders:
                raise HTTPException(status_code=404, detail="Order not found")
            backend.orders[order_id]["status"] = payload["status"]
            return backend.orders[order_id]

        @router.get("/admin/users")
        def admin_users(authorization: Optional[str] = Header(default=None)):
            current_admin(authorization)
            return list(backend.users.values())

        @router.post("/admin/users/make-admin")
        def admin_make_admin(payload: dict = Body(...), authorization: Optional[str] = Header(default=None)):
            current_admin(authorization)
            user = next((u for u in backend.users.values() if u["email"] == payload.get("email")), None)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            user["is_admin"] = True
            return user

        @router.get("/admin/analytics")
        def admin_analytics(authorization: Optional[str] = Header(default=None)):
            current_admin(authorization)
            return {"orders": len(backend.orders), "users": len(backend.users), "revenue": sum(o["total_amount"] for o in backend.orders.values())}

        app.include_router(router)
        return app

@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    api_client.reset_api_client()
    reset_storage()
    reset_provider()

@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()

@pytest.fixture
def api(backend):
    """Branche l'ApiClient sur le faux backend (TestClient utilisé comme httpx.Client)."""
    with TestClient(backend.app) as http:
        api_client.set_api_client(api_client.ApiClient(base_url=BASE_URL, http=http))
        yield backend

@pytest.fixture
def storage() -> LocalStorage:
    return LocalStorage()

@pytest.fixture
def session(storage) -> AuthSession:
    return AuthSession(storage)

@pytest.fixture
def authed_session(storage) -> AuthSession:
    s = AuthSession(storage)
    s.set_tokens({"access_token": "tok-u1", "refresh_token": "ref-u1", "token_type": "bearer"})
    return s

@pytest.fixture
def sync_runner():
    """Exécute la télémétrie « en tâche de fond » immédiatement (tests déterministes)."""
    return lambda fn: fn()
