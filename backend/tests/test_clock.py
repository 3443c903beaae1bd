import logging

from scoreboard.services.match.clock import Clock


class FakeSpawner:
    """Collects spawned workers so a test can drive them by hand."""

    def __init__(self):
        self.calls = []

    def __call__(self, fn, *args):
        self.calls.append((fn, args))


def no_sleep(_seconds):
    return None


def test_start_is_idempotent_while_running():
    spawn = FakeSpawner()
    clock = Clock(lambda gen: None, spawn=spawn, sleep=no_sleep)
    first = clock.start()
    second = clock.start()
    assert first == second
    assert clock.running
    assert len(spawn.calls) == 1


def test_worker_ticks_until_cancelled():
    spawn = FakeSpawner()
    seen = []
    clock = None

    def on_tick(gen):
        seen.append(gen)
        if len(seen) == 3:
            clock.cancel()

    clock = Clock(on_tick, spawn=spawn, sleep=no_sleep)
    gen = clock.start()
    worker, args = spawn.calls[0]
    worker(*args)
    assert seen == [gen, gen, gen]
    assert not clock.running


def test_cancel_during_sleep_suppresses_tick():
    spawn = FakeSpawner()
    seen = []
    clock = Clock(seen.append, spawn=spawn, sleep=lambda s: clock.cancel())
    clock.start()
    worker, args = spawn.calls[0]
    worker(*args)
    assert seen == []


def test_restart_opens_new_generation():
    spawn = FakeSpawner()
    seen = []
    clock = Clock(seen.append, spawn=spawn, sleep=no_sleep)
    old = clock.start()
    clock.cancel()
    new = clock.start()
    assert new != old
    assert not clock.is_current(old)
    assert clock.is_current(new)

    # The superseded worker exits without firing.
    stale_worker, stale_args = spawn.calls[0]
    stale_worker(*stale_args)
    assert seen == []


def test_cancel_when_idle_is_harmless():
    clock = Clock(lambda gen: None, spawn=FakeSpawner(), sleep=no_sleep)
    clock.cancel()
    assert clock.generation == 0
    assert not clock.running


def test_heartbeat_logged(caplog):
    spawn = FakeSpawner()
    logger = logging.getLogger('clock-test')
    ticks = []
    clock = None

    def on_tick(gen):
        ticks.append(gen)
        if len(ticks) == 4:
            clock.cancel()

    clock = Clock(on_tick, heartbeat=2, logger=logger, spawn=spawn, sleep=no_sleep)
    clock.start()
    worker, args = spawn.calls[0]
    with caplog.at_level(logging.INFO, logger='clock-test'):
        worker(*args)
    beats = [r for r in caplog.records if '[clock-heartbeat]' in r.getMessage()]
    assert len(beats) == 2
