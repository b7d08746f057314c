"""
Session d'authentification côté client.
- Jetons {access_token, refresh_token, token_type} persistés sous une seule clé du stockage local.
- Observable: les abonnés sont notifiés à chaque changement d'état connecté/anonyme
  (le panier s'y abonne pour déclencher la réconciliation à la connexion).
- Injectée explicitement dans les services (pas de contexte global).
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from storefront.config import AUTH_TOKENS_KEY
from storefront.infra.api_client import NotAuthenticatedError
from storefront.infra.storage import LocalStorage, get_storage

logger = logging.getLogger(__name__)

class AuthSession:
    def __init__(self, storage: Optional[LocalStorage] = None, key: str = AUTH_TOKENS_KEY):
        self.storage = storage or get_storage()
        self.key = key
        self.user: Optional[Dict[str, Any]] = None
        self._listeners: List[Callable[["AuthSession"], Any]] = []
        self._tokens = self._load()

    def _load(self) -> Optional[Dict[str, Any]]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return None
        try:
            tokens = json.loads(raw)
        except ValueError:
            logger.warning("auth.session: jetons illisibles, suppression key=%s", self.key)
            self.storage.remove_item(self.key)
            return None
        return tokens if isinstance(tokens, dict) and tokens.get("access_token") else None

    @property
    def tokens(self) -> Optional[Dict[str, Any]]:
        return dict(self._tokens) if self._tokens else None

    @property
    def access_token(self) -> Optional[str]:
        return (self._tokens or {}).get("access_token")

    @property
    def refresh_token(self) -> Optional[str]:
        return (self._tokens or {}).get("refresh_token")

    @property
    def token_type(self) -> str:
        return (self._tokens or {}).get("token_type") or "Bearer"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def require_token(self) -> str:
        token = self.access_token
        if not token:
            raise NotAuthenticatedError()
        return token

    def set_tokens(self, token_data: Optional[Dict[str, Any]]) -> None:
        """Enregistre (ou efface si None) les jetons, puis notifie si l'état connecté a changé."""
        was_authenticated = self.is_authenticated
        if token_data and token_data.get("access_token"):
            self._tokens = {
                "access_token": token_data.get("access_token"),
                "refresh_token": token_data.get("refresh_token"),
                "token_type": token_data.get("token_type") or "bearer",
            }
            self.storage.set_item(self.key, json.dumps(self._tokens))
        else:
            self._tokens = None
            self.user = None
            self.storage.remove_item(self.key)
        if was_authenticated != self.is_authenticated:
            self._notify()

    def clear(self) -> None:
        self.set_tokens(None)

    def subscribe(self, callback: Callable[["AuthSession"], Any]) -> Callable[[], None]:
        """Abonne un observateur; retourne une fonction de désabonnement."""
        self._listeners.append(callback)

        def _unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                # Un observateur défaillant ne doit pas bloquer la connexion
                logger.exception("auth.session listener failed")
