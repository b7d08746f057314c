from typing import Optional, Dict, Any
import logging

from storefront.auth.models import AuthResponse, make_auth_response, handle_exception
from storefront.auth.session import AuthSession
from storefront.utils.validators import validate_password_strength
from .repository import (
    auth_login as sign_in_password,
    auth_register as sign_up_account,
    auth_me as _repo_get_current_user,
    auth_refresh as _repo_refresh,
    auth_logout as _repo_logout,
    get_user_details as _repo_user_details,
)

logger = logging.getLogger(__name__)

# --- Cas d'usage Auth exposés ---

def login(session: AuthSession, email: str, password: str) -> AuthResponse:
    """Connexion:
    - POST /auth/login via repository
    - Enregistre les jetons dans la session (ce qui notifie le panier: réconciliation)
    - Message de fallback: identifiants invalides
    """
    try:
        email = (email or "").strip()
        res = make_auth_response(sign_in_password(email, password), fallback_error="Identifiants invalides")
        if res.success:
            session.user = res.user
            session.set_tokens(res.session)
        return res
    except Exception as e:
        return handle_exception("login", e)

def register(email: str, first_name: str, last_name: Optional[str], password: str) -> AuthResponse:
    """Inscription:
    - Vérifie la robustesse du mot de passe avant tout appel réseau
    - Retourne le profil créé (la connexion reste explicite)
    """
    try:
        validate_password_strength(password)
    except ValueError as e:
        return AuthResponse(False, error=str(e))
    try:
        user = sign_up_account((email or "").strip(), (first_name or "").strip(), last_name, password)
        return AuthResponse(True, user=user)
    except Exception as e:
        return handle_exception("register", e)

def get_current_user(session: AuthSession) -> AuthResponse:
    if not session.is_authenticated:
        return AuthResponse(False, error="Non authentifié")
    try:
        user = _repo_get_current_user(session.access_token, session.token_type)
        session.user = user
        return AuthResponse(True, user=user, session=session.tokens)
    except Exception as e:
        return handle_exception("get_current_user", e)

def get_user_details(session: AuthSession) -> AuthResponse:
    """Profil complet (/users/me): sert à préremplir le widget de paiement."""
    if not session.is_authenticated:
        return AuthResponse(False, error="Non authentifié")
    try:
        user = _repo_user_details(session.access_token, session.token_type)
        session.user = user
        return AuthResponse(True, user=user)
    except Exception as e:
        return handle_exception("get_user_details", e)

def refresh_tokens(session: AuthSession) -> AuthResponse:
    """Rafraîchit les jetons; en cas d'échec la session est vidée (retour à l'état anonyme)."""
    if not session.refresh_token:
        return AuthResponse(False, error="Aucun refresh_token")
    try:
        res = make_auth_response(_repo_refresh(session.refresh_token), fallback_error="Session expirée")
    except Exception:
        logger.exception("auth.service.refresh_tokens failed")
        res = AuthResponse(False, error="Session expirée, veuillez vous connecter")
    if res.success:
        session.set_tokens(res.session)
        if res.user:
            session.user = res.user
    else:
        session.clear()
    return res

def logout(session: AuthSession) -> AuthResponse:
    """Déconnexion: l'appel API est best-effort, les jetons locaux sont toujours effacés."""
    if session.is_authenticated:
        try:
            _repo_logout(session.access_token, session.token_type)
        except Exception:
            logger.exception("auth.service.logout: erreur API ignorée")
    session.clear()
    return AuthResponse(True)

def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    role = str((user or {}).get("role") or "").lower()
    return role == "admin" or bool((user or {}).get("is_admin"))
