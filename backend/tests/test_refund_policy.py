from datetime import datetime, timedelta, timezone

from inkmity.utils.refund_policy import is_refund_eligible

NOW = datetime(2025, 3, 1, 12, 0)


def test_refund_window_boundaries():
    assert is_refund_eligible(NOW, NOW)
    assert is_refund_eligible(NOW + timedelta(hours=71, minutes=59), NOW)
    assert not is_refund_eligible(NOW + timedelta(hours=72), NOW)
    assert not is_refund_eligible(NOW + timedelta(days=10), NOW)


def test_past_appointments_are_not_refundable():
    assert not is_refund_eligible(NOW - timedelta(minutes=1), NOW)


def test_aware_datetimes_are_compared_in_utc():
    start = datetime(2025, 3, 2, 7, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert is_refund_eligible(start, NOW)
