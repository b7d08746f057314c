"""
Adaptateur HTTP (httpx) vers l'API REST de la boutique.
- Centralise l'URL de base, le timeout et l'en-tête Authorization: Bearer <token>.
- Transforme toute réponse non-2xx en ApiError (message extrait du corps JSON).
- Un appel authentifié sans jeton échoue localement (NotAuthenticatedError), sans requête réseau.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from storefront.config import API_BASE_URL, HTTP_TIMEOUT

logger = logging.getLogger(__name__)

class ApiError(Exception):
    """Erreur renvoyée par le backend (status_code=0 pour une erreur réseau)."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail

class NotAuthenticatedError(ApiError):
    def __init__(self, detail: str = "Aucun jeton d'accès: veuillez vous connecter"):
        super().__init__(401, detail)

def extract_error_message(resp) -> str:
    """
    Essaie d'extraire un message d'erreur utile d'une réponse HTTP:
    - JSON: detail | message | error_description | error
    - sinon le texte brut, sinon "status <code>"
    """
    msg = None
    try:
        body = resp.json()
        if isinstance(body, dict):
            msg = body.get("detail") or body.get("message") or body.get("error_description") or body.get("error")
            if isinstance(msg, list):
                # Erreurs de validation FastAPI: [{"loc": ..., "msg": ...}, ...]
                msg = "; ".join(str((m or {}).get("msg") or m) for m in msg)
    except Exception:
        msg = resp.text
    return str(msg or f"status {resp.status_code}")

class ApiClient:
    """Client REST minimal: un httpx.Client partagé + helpers par verbe."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else HTTP_TIMEOUT
        self._http = http

    @property
    def http(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=self.timeout)
        return self._http

    def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        token_type: str = "Bearer",
        auth_required: bool = False,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if auth_required and not token:
            raise NotAuthenticatedError()

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"{token_type or 'Bearer'} {token}"
        url = f"{self.base_url}{path}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            resp = self.http.request(method, url, json=json, params=params or None, headers=headers)
        except httpx.HTTPError as e:
            logger.exception("api_client.request failed method=%s path=%s", method, path)
            raise ApiError(0, f"Erreur réseau: {e}") from e

        if not (200 <= resp.status_code < 300):
            detail = extract_error_message(resp)
            logger.error("api_client.request status=%s method=%s path=%s detail=%s", resp.status_code, method, path, detail)
            raise ApiError(resp.status_code, detail)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

_api_client: Optional[ApiClient] = None

def get_api_client() -> ApiClient:
    global _api_client
    if _api_client is None:
        _api_client = ApiClient()
    return _api_client

def set_api_client(client: ApiClient) -> None:
    """Remplace le client courant (tests: TestClient FastAPI injecté comme transport)."""
    global _api_client
    _api_client = client

def reset_api_client() -> None:
    global _api_client
    _api_client = None
