"""
Stockage client clé/valeur (équivalent headless de window.localStorage).
Deux clés seulement sont utilisées par l'application: le panier anonyme et les jetons d'auth.
Si un chemin est fourni, le contenu est persisté dans un fichier JSON (une écriture par mutation).
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from storefront.config import STORAGE_PATH

logger = logging.getLogger(__name__)

class LocalStorage:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, str] = {}
        if self.path and self.path.exists():
            try:
                self._data = {str(k): str(v) for k, v in json.loads(self.path.read_text("utf-8")).items()}
            except Exception:
                logger.exception("storage.load failed path=%s", self.path)
                self._data = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def keys(self):
        return list(self._data.keys())

    def clear(self) -> None:
        self._data = {}
        self._flush()

    def _flush(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data), encoding="utf-8")

_storage: Optional[LocalStorage] = None

def get_storage() -> LocalStorage:
    global _storage
    if _storage is None:
        _storage = LocalStorage(STORAGE_PATH or None)
    return _storage

def reset_storage() -> None:
    global _storage
    _storage = None
