"""
Tests for time providers and id generation
"""

import re
from datetime import datetime, timezone

from supplier_reliability.kernel.ids import generate_id
from supplier_reliability.kernel.time import TestTimeProvider, age_in_days, ensure_utc

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-7[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_generate_id_is_uuid7_shaped_and_unique() -> None:
    ids = {generate_id() for _ in range(1000)}

    assert len(ids) == 1000
    assert all(UUID_PATTERN.match(i) for i in ids)


def test_test_time_provider_advances() -> None:
    clock = TestTimeProvider(datetime(2025, 1, 15, tzinfo=timezone.utc))

    clock.advance_days(2)
    clock.advance_seconds(3600)

    assert clock.now() == datetime(2025, 1, 17, 1, 0, tzinfo=timezone.utc)


def test_ensure_utc_treats_naive_as_utc() -> None:
    naive = datetime(2025, 1, 15, 12, 0)

    assert ensure_utc(naive) == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_age_in_days() -> None:
    then = datetime(2025, 1, 1, tzinfo=timezone.utc)
    now = datetime(2025, 1, 16, 12, 0, tzinfo=timezone.utc)

    assert age_in_days(then, now) == 15.5
    assert age_in_days(now, then) == -15.5
