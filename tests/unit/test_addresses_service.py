from unittest.mock import MagicMock

import pytest

from storefront.addresses import service as addr_service
from storefront.addresses.models import Address
from storefront.addresses.service import AddressDirectory, pick_default_address

def _addr(id, type="shipping", default=False, **kw):
    return {"id": id, "street_address": "12 MG Road", "city": "Mumbai", "state": "MH", "postal_code": "400001",
            "country": "India", "address_type": type, "is_default": default, **kw}

VALID = {"street_address": "221B Baker Street", "city": "Pune", "state": "MH", "postal_code": "411001", "country": "India"}

@pytest.fixture
def directory(authed_session):
    return AddressDirectory(authed_session, refresh_delay=0)

def test_default_address_is_selected(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1"), _addr("a2", default=True)])
    assert directory.list().success
    assert directory.selected_address_id == "a2"
    assert directory.default_shipping.id == "a2"
    assert directory.has_default("shipping") and not directory.has_default("billing")

def test_first_address_when_no_default(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1"), _addr("a2")])
    directory.list()
    assert directory.selected_address_id == "a1"

def test_empty_list_selects_none(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [])
    directory.list()
    assert directory.selected_address_id is None
    assert directory.has_addresses() is False

def test_pick_default_prefers_shipping():
    addresses = [Address.model_validate(_addr("b", "billing", True)), Address.model_validate(_addr("s", "shipping", True))]
    assert pick_default_address(addresses).id == "s"

def test_invalid_create_makes_no_call(monkeypatch, directory):
    create = MagicMock()
    monkeypatch.setattr(addr_service.repository, "create_address", create)
    res = directory.create({**VALID, "postal_code": "12"})
    assert res.success is False
    assert "postal_code" in res.data
    create.assert_not_called()

def test_create_waits_then_refetches(monkeypatch, authed_session):
    slept = []
    directory = AddressDirectory(authed_session, refresh_delay=0.5, sleep=slept.append)
    monkeypatch.setattr(addr_service.repository, "create_address", lambda token, data: _addr("n1", **{k: v for k, v in data.items() if k not in ("country",)}))
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("n1")])
    res = directory.create(VALID)
    assert res.success and res.data.id == "n1"
    assert slept == [0.5]
    assert [a.id for a in directory.addresses] == ["n1"]

def test_update_validates_merged_data(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1")])
    directory.list()
    update = MagicMock(return_value=_addr("a1", city="Thane"))
    monkeypatch.setattr(addr_service.repository, "update_address", update)
    assert directory.update("a1", {"city": "Thane"}).success
    update.assert_called_once_with("tok-u1", "a1", {"city": "Thane"})
    assert directory.update("a1", {"city": ""}).success is False

def test_partial_update_without_loaded_list(monkeypatch, directory):
    update = MagicMock(return_value={"message": "Address updated"})
    monkeypatch.setattr(addr_service.repository, "update_address", update)
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [])
    res = directory.update("a9", {"apartment": "4B"})
    assert res.success is True
    assert res.data == {"message": "Address updated"}
    update.assert_called_once_with("tok-u1", "a9", {"apartment": "4B"})

    res = directory.update("a9", {"postal_code": "12", "country": "India"})
    assert res.success is False
    assert "postal_code" in res.data
    assert update.call_count == 1

def test_delete_selected_clears_selection(monkeypatch, directory):
    lists = iter([[_addr("a1", default=True), _addr("a2")], [_addr("a2")]])
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: next(lists))
    monkeypatch.setattr(addr_service.repository, "delete_address", lambda token, i: None)
    directory.list()
    assert directory.selected_address_id == "a1"
    assert directory.delete("a1").success
    assert directory.selected_address_id == "a2"

def test_refetch_error_is_logged_not_raised(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "set_default", lambda token, i: _addr(i, default=True))
    def boom(token, t=None):
        raise RuntimeError("replica down")
    monkeypatch.setattr(addr_service.repository, "list_addresses", boom)
    assert directory.set_default("a1").success

def test_set_default_with_message_body(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "set_default", lambda token, i: {"message": "Default address updated"})
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1", default=True)])
    res = directory.set_default("a1")
    assert res.success is True
    assert res.data == {"message": "Default address updated"}
    assert directory.selected_address_id == "a1"

def test_set_default_returns_parsed_address(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "set_default", lambda token, i: _addr(i, default=True))
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1", default=True)])
    res = directory.set_default("a1")
    assert isinstance(res.data, Address) and res.data.is_default

def test_fetch_default_none(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "fetch_default", lambda token, t: None)
    res = directory.fetch_default("billing")
    assert res.success and res.data is None

def test_anonymous_session_fails_locally(session, monkeypatch):
    listing = MagicMock()
    monkeypatch.setattr(addr_service.repository, "list_addresses", listing)
    res = AddressDirectory(session).list()
    assert res.success is False
    listing.assert_not_called()

def test_reset(monkeypatch, directory):
    monkeypatch.setattr(addr_service.repository, "list_addresses", lambda token, t=None: [_addr("a1")])
    directory.list()
    directory.reset()
    assert directory.addresses == [] and directory.selected_address_id is None
