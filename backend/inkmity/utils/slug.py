import re
import secrets
from typing import Callable

_NON_SLUG_RUNS = re.compile(r"[^a-z0-9]+")

USERNAME_SLUG_MAX = 24
# No 0/1/i/l/o so generated handles are easy to read back
SUFFIX_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"


def slugify_username(raw: str, max_length: int = USERNAME_SLUG_MAX) -> str:
    """Convert a display name to a username slug.

    Rules:
    - lowercase
    - runs of characters outside [a-z0-9] become a single dash
    - no leading/trailing dashes
    - at most ``max_length`` characters
    """
    s = _NON_SLUG_RUNS.sub("-", (raw or "").lower()).strip("-")
    return s[:max_length].strip("-")


def random_suffix(length: int = 4) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def generate_unique_username(
    base: str,
    is_taken: Callable[[str], bool],
    max_tries: int = 10,
) -> str:
    """Return ``base`` or ``base-xxxx`` that ``is_taken`` reports free.

    Falls back to a longer suffix once ``max_tries`` short ones collide.
    """
    base_slug = slugify_username(base) or "user"
    if not is_taken(base_slug):
        return base_slug
    for _ in range(max_tries):
        candidate = f"{base_slug}-{random_suffix()}"
        if not is_taken(candidate):
            return candidate
    return f"{base_slug}-{random_suffix(8)}"
