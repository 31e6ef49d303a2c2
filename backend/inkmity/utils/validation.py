import re

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
_PASSWORD_RE = re.compile(r"^(?=.*[A-Z])(?=.*\d).{6,}$")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match((email or "").strip()))


def validate_password(password: str) -> bool:
    """At least six characters with one uppercase letter and one digit."""
    return bool(_PASSWORD_RE.match(password or ""))
