"""
Statuts d'expédition: position dans la frise de suivi et libellé du badge.
Un statut inconnu n'est jamais une erreur: position -1, libellé brut (ou "Inconnu").
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

# Étapes linéaires de la frise, dans l'ordre
STEPS = [
    ("pending", "Commande créée"),
    ("awb_generated", "Lettre de transport générée"),
    ("pickup_scheduled", "Enlèvement planifié"),
    ("pickup_completed", "Colis enlevé"),
    ("in_transit", "En transit"),
    ("out_for_delivery", "En cours de livraison"),
    ("delivered", "Livré"),
]

# Statuts hors frise (badge uniquement)
BADGE_ONLY = {
    "rto_initiated": "Retour initié",
    "rto_delivered": "Retourné",
    "cancelled": "Annulé",
    "lost": "Perdu",
}

ALIASES = {"picked_up": "pickup_completed"}

STATUSES = [key for key, _ in STEPS] + list(BADGE_ONLY)
_LABELS = {**dict(STEPS), **BADGE_ONLY}
_POSITIONS = {key: i for i, (key, _) in enumerate(STEPS)}

def normalize_status(status: Optional[str]) -> str:
    key = "_".join(str(status or "").strip().lower().split())
    return ALIASES.get(key, key)

def status_position(status: Optional[str]) -> int:
    return _POSITIONS.get(normalize_status(status), -1)

def status_label(status: Optional[str]) -> str:
    return _LABELS.get(normalize_status(status)) or (status or "Inconnu")

def step_states(status: Optional[str]) -> List[Dict[str, str]]:
    """Frise complète: chaque étape est completed / current / pending selon le statut courant."""
    current = status_position(status)
    out = []
    for i, (key, label) in enumerate(STEPS):
        state = "completed" if i < current else "current" if i == current else "pending"
        out.append({"key": key, "label": label, "state": state})
    return out

def _parse_date(value: Any) -> datetime:
    if not value:
        return datetime.min
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min
    return parsed.replace(tzinfo=None)

def normalize_history(events: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Historique de suivi normalisé {date, activity, location, status}, du plus récent au plus ancien."""
    out = []
    for event in events or []:
        scan = event.get("scan_details") or {}
        out.append({
            "date": event.get("date") or event.get("updated_at") or event.get("timestamp"),
            "activity": event.get("activity") or event.get("status") or event.get("message"),
            "location": event.get("location") or scan.get("location") or "",
            "status": event.get("status") or "",
        })
    return sorted(out, key=lambda e: _parse_date(e["date"]), reverse=True)
