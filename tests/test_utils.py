import time

from datarepo.utils import ManualTimeProvider, SystemTimeProvider


def test_system_time_provider_reports_epoch_millis():
    before = int(time.time() * 1000)
    now = SystemTimeProvider().now()
    after = int(time.time() * 1000)
    assert before - 1 <= now <= after + 1


def test_manual_time_provider_moves_only_when_told():
    clock = ManualTimeProvider(start=10)
    assert clock.now() == 10
    assert clock.advance(5) == 15
    clock.set(100)
    assert clock.now() == 100
