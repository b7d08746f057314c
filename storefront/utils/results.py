from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class ActionResult:
    """
    Résultat normalisé d'une action côté client: {success, data, error}.
    Les services ne laissent remonter aucune exception vers l'appelant (UI).
    """

    def __init__(self, success: bool, data: Any = None, error: Optional[str] = None):
        self.success = success
        self.data = data
        self.error = error

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return f"ActionResult(success={self.success!r}, error={self.error!r})"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.error:
            out["error"] = self.error
        return out

def error_message(e: Exception) -> str:
    # ApiError expose .detail, les autres exceptions leur message
    return str(getattr(e, "detail", None) or e) or e.__class__.__name__

def handle_exception(action: str, e: Exception) -> ActionResult:
    logger.exception(f"Erreur {action}")
    return ActionResult(False, error=f"Erreur {action}: {error_message(e)}")
