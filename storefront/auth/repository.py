from typing import Any, Dict, Optional

import storefront.infra.api_client as api_client

# --- Auth (/auth/*) ---

def auth_login(email: str, password: str) -> Dict[str, Any]:
    """POST /auth/login -> {access_token, refresh_token, token_type, user}."""
    return api_client.get_api_client().post("/auth/login", json={"email": email, "password": password})

def auth_register(email: str, first_name: str, last_name: Optional[str], password: str) -> Dict[str, Any]:
    """POST /auth/register -> profil utilisateur créé (sans session)."""
    payload = {"email": email, "first_name": first_name, "last_name": last_name, "password": password}
    return api_client.get_api_client().post("/auth/register", json=payload)

def auth_me(token: str, token_type: str = "Bearer") -> Dict[str, Any]:
    return api_client.get_api_client().get("/auth/me", token=token, token_type=token_type, auth_required=True)

def auth_refresh(refresh_token: str) -> Dict[str, Any]:
    return api_client.get_api_client().post("/auth/refresh", json={"refresh_token": refresh_token})

def auth_logout(token: str, token_type: str = "Bearer") -> Any:
    return api_client.get_api_client().post("/auth/logout", token=token, token_type=token_type, auth_required=True)

# --- Profil (/users/me) ---

def get_user_details(token: str, token_type: str = "Bearer") -> Dict[str, Any]:
    """Détails utilisateur pour préremplir le widget de paiement (nom, email, téléphone)."""
    return api_client.get_api_client().get("/users/me", token=token, token_type=token_type, auth_required=True)
