from __future__ import annotations

import itertools

import pytest


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeHandle:
    def __init__(self, when: float, delay: float, callback, args, seq: int) -> None:
        self.when = when
        self.delay = delay
        self.callback = callback
        self.args = args
        self.seq = seq
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[FakeHandle] = []
        self._seq = itertools.count()

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.clock.now + delay * 1000.0, delay, callback, args, next(self._seq))
        self.handles.append(handle)
        return handle

    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, ms: float) -> None:
        target = self.clock.now + ms
        while True:
            due = [h for h in self.pending() if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self.clock.now = max(self.clock.now, handle.when)
            handle.fired = True
            handle.callback(*handle.args)
        self.clock.now = max(self.clock.now, target)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loop(clock: FakeClock) -> FakeLoop:
    return FakeLoop(clock)
