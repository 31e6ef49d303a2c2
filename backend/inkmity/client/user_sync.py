from typing import Any, Dict, Iterable, Optional

from ..utils.slug import slugify_username


def _to_num(value: Optional[str]) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    number = float(value)
    return int(number) if number.is_integer() else number


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, "", [])}


def map_client_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """Onboarding answers of a client, as stored on the profile."""
    return _compact({
        "budget_min": _to_num(form.get("budget_min")),
        "budget_max": _to_num(form.get("budget_max")),
        "location": form.get("location"),
        "placement": form.get("placement"),
        "size": form.get("size"),
        "style": form.get("style"),
        "availability": form.get("availability"),
    })


def map_artist_form(form: Dict[str, Any]) -> Dict[str, Any]:
    styles: Iterable[str] = form.get("styles") or []
    return _compact({
        "location": form.get("location"),
        "shop": form.get("shop"),
        "styles": list(styles),
        "years_experience": _to_num(form.get("years")),
        "base_rate": _to_num(form.get("base_rate")),
        "booking_preference": form.get("booking_preference"),
        "travel_frequency": form.get("travel_frequency"),
    })


def build_sync_payload(
    *,
    email: str,
    role: str,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    profile: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Body for ``POST /api/users/sync``.

    The username falls back from "first last" to the given username, then
    the email's local part, then ``"user"``.
    """
    full = f"{first_name or ''} {last_name or ''}".strip()
    from_email = (email or "").split("@")[0]
    name = full or (username or "").strip() or from_email or "user"
    return {
        "email": email,
        "role": role,
        "username": name,
        "username_slug": slugify_username(name),
        "first_name": first_name,
        "last_name": last_name,
        "profile": profile or {},
    }
