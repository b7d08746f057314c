from typing import Optional, Dict, Any

from storefront.utils.results import ActionResult
from storefront.utils import results

class AuthResponse(ActionResult):
    def __init__(
        self,
        success: bool,
        user: Optional[Dict[str, Any]] = None,
        session: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        super().__init__(success, data=user, error=error)
        self.user = user
        self.session = session

    @property
    def access_token(self):
        return (self.session or {}).get("access_token")

    @property
    def refresh_token(self):
        return (self.session or {}).get("refresh_token")

def build_session_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "access_token": data.get("access_token"),
        "refresh_token": data.get("refresh_token"),
        "token_type": data.get("token_type") or "bearer",
    }

def make_auth_response(data: Optional[Dict[str, Any]], fallback_error: str = "Identifiants invalides") -> AuthResponse:
    data = data or {}
    if not data.get("access_token"):
        return AuthResponse(False, error=fallback_error)
    return AuthResponse(True, user=data.get("user"), session=build_session_dict(data))

def handle_exception(action: str, e: Exception) -> AuthResponse:
    """Même journalisation et même message que results.handle_exception, typé AuthResponse."""
    return AuthResponse(False, error=results.handle_exception(action, e).error)
