from datetime import datetime, timedelta

from .dates import to_naive_utc

REFUND_WINDOW = timedelta(hours=72)


def is_refund_eligible(start_at: datetime, now: datetime) -> bool:
    """Platform fees are refundable only inside the 72 hours before the appointment.

    Appointments already in the past, and those 72h or more away, are not
    eligible.
    """
    delta = to_naive_utc(start_at) - to_naive_utc(now)
    return timedelta(0) <= delta < REFUND_WINDOW
