import pytest

from storefront.admin import service as admin_service
from storefront.auth import service as auth_service
from storefront.auth.session import AuthSession
from storefront.payments import repository as payments_repository
from storefront.products import service as products_service

@pytest.fixture
def admin_session(api, storage):
    s = AuthSession(storage)
    assert auth_service.login(s, "admin@example.com", "Secret123").success
    return s

def test_regular_user_gets_forbidden(api, authed_session):
    res = admin_service.list_users(authed_session)
    assert res.success is False
    assert "Admin only" in res.error

def test_manage_orders(admin_session, api):
    order = payments_repository.create_order("tok-u1", "addr-1", [{"product_id": "sku-1", "quantity": 1, "price": 12.5}])
    assert admin_service.update_order_status(admin_session, order["id"], "shipped").success
    shipped = admin_service.filter_orders_by_status(admin_session, "shipped")
    assert [o["id"] for o in shipped.data] == [order["id"]]
    stats = admin_service.order_stats(admin_service.list_orders(admin_session).data)
    assert stats["shipped"] == 1 and stats["total"] == 1

def test_make_user_admin(admin_session, api):
    assert admin_service.make_user_admin(admin_session, "user@example.com").success
    assert api.users["u1"]["is_admin"] is True
    missing = admin_service.make_user_admin(admin_session, "ghost@example.com")
    assert missing.success is False and "User not found" in missing.error

def test_analytics(admin_session):
    data = admin_service.get_analytics(admin_session).data
    assert data["users"] == 2 and data["orders"] == 0

def test_public_catalog_search(api):
    res = products_service.list_products(search="rose")
    assert res.success
    assert res.data["total"] == 1
    assert res.data["products"][0].name == "Rose Oil"
