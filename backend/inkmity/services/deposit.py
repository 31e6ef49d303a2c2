import math
from typing import Optional

from ..models.artist_policy import ArtistPolicy, DepositMode

DEFAULT_PERCENT = 0.2


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_deposit_cents(policy: Optional[ArtistPolicy], price_cents: int) -> int:
    """Deposit owed for a booking priced at ``price_cents``.

    Flat policies charge ``amount_cents``. Percent policies charge
    ``price * percent`` clamped to ``[min_cents, max_cents]``. Artists without
    a policy get 20% and no clamp.
    """
    base = max(0, int(price_cents or 0))
    if policy is None:
        return _round_half_up(base * DEFAULT_PERCENT)
    if policy.mode == DepositMode.FLAT:
        return max(0, int(policy.amount_cents or 0))
    percent = policy.percent if policy.percent is not None else DEFAULT_PERCENT
    percent = max(0.0, min(1.0, float(percent)))
    raw = _round_half_up(base * percent)
    min_cents = max(0, int(policy.min_cents or 0))
    max_cents = policy.max_cents if policy.max_cents is not None else None
    amount = max(raw, min_cents)
    if max_cents is not None:
        amount = min(amount, max(0, int(max_cents)))
    return amount
