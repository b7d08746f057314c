"""
Accès au carnet d'adresses (/users/me/addresses) pour l'utilisateur connecté.
Les fonctions lèvent ApiError; fetch_default convertit le 404 en None (pas d'adresse par défaut).
"""
from typing import Any, Dict, List, Optional
import storefront.infra.api_client as api_client
from storefront.infra.api_client import ApiError

BASE_PATH = "/users/me/addresses"

# module storefront.addresses.repository
def list_addresses(token: str, address_type: Optional[str] = None) -> List[Dict[str, Any]]:
    params = {"address_type": address_type} if address_type else None
    return api_client.get_api_client().get(BASE_PATH, token=token, auth_required=True, params=params) or []

def get_address(token: str, address_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().get(f"{BASE_PATH}/{address_id}", token=token, auth_required=True)

def fetch_default(token: str, address_type: str) -> Optional[Dict[str, Any]]:
    try:
        return api_client.get_api_client().get(f"{BASE_PATH}/default/{address_type}", token=token, auth_required=True)
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise

def create_address(token: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return api_client.get_api_client().post(BASE_PATH, token=token, auth_required=True, json=data)

def update_address(token: str, address_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return api_client.get_api_client().put(f"{BASE_PATH}/{address_id}", token=token, auth_required=True, json=data)

def delete_address(token: str, address_id: str) -> Any:
    return api_client.get_api_client().delete(f"{BASE_PATH}/{address_id}", token=token, auth_required=True)

def set_default(token: str, address_id: str) -> Dict[str, Any]:
    return api_client.get_api_client().post(f"{BASE_PATH}/{address_id}/set-default", token=token, auth_required=True)

def statistics(token: str) -> Dict[str, Any]:
    return api_client.get_api_client().get("/addresses/statistics/count", token=token, auth_required=True)
