from __future__ import annotations
import asyncio
import logging
import math
from typing import Callable, Optional

from .metrics import TickMetrics
from .utils.time import fmt_ms, now_ms

log = logging.getLogger("setfixedinterval")

DEFAULT_FREQUENCY_HZ = 15.0
# completion fires after the automatic stop has run
COMPLETE_PAD_SEC = 0.01


def _noop() -> None:
    return None


def _callable_name(fn: Optional[Callable]) -> str:
    fn_name = getattr(fn, "__name__", "")
    if fn is None or not fn_name or fn_name == "<lambda>":
        return "anonymous"
    return fn_name


class FixedIntervalTicker:
    def __init__(
        self,
        frequency: Optional[float] = None,
        work_fn: Optional[Callable[[], None]] = None,
        warn_fn: Optional[Callable[[float], None]] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional[TickMetrics] = None,
        name: Optional[str] = None,
    ):
        self.tick_interval = 1000.0 / (frequency or DEFAULT_FREQUENCY_HZ)
        # fixed at 10% of the initial interval, frequency changes leave it alone
        self.warn_interval = self.tick_interval / 10
        self.clock = clock or now_ms
        self.last_tick = self.clock()
        self.work_fn = work_fn or _noop
        self.warn_fn = warn_fn
        self.metrics = metrics
        self.name = name or _callable_name(work_fn)
        self.ticks = 0
        self.dropped = 0
        self.warnings = 0
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def frequency(self) -> float:
        return 1000.0 / self.tick_interval

    @frequency.setter
    def frequency(self, hz: float) -> None:
        self.tick_interval = 1000.0 / hz

    @property
    def running(self) -> bool:
        return self._handle is not None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def _schedule(self, delay_ms: float) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay_ms / 1000.0, self._run)

    def start(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        if self.metrics is not None:
            self.metrics.reset_phase()
        self._handle = self._schedule(self.tick_interval)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def run_for(self, seconds: float, on_complete: Optional[Callable[[], None]] = None) -> None:
        # overlapping calls each add their own stop/complete timers
        loop = self._get_loop()
        loop.call_later(seconds, self.stop)
        if on_complete is not None:
            loop.call_later(seconds + COMPLETE_PAD_SEC, on_complete)
        self.start()

    def _run(self) -> None:
        fired = self._handle
        try:
            self._tick()
        finally:
            # an error escaped before re-arming, nothing is pending any more
            if self._handle is fired:
                self._handle = None

    def _tick(self) -> None:
        start_work = self.clock()
        try:
            self.work_fn()
        except Exception as exc:
            log.exception("%s: work callback failed", self.name)
            if self.metrics is not None:
                self.metrics.record_error(exc)
        finish_work = self.clock()
        work_time = finish_work - start_work
        self.ticks += 1

        if self.warn_fn is not None and work_time > self.warn_interval:
            self.warnings += 1
            log.warning("warning: %s taking %.1fms of %.1fms available", self.name, work_time, self.tick_interval)
            if self.metrics is not None:
                self.metrics.record_warn(work_time)
            self.warn_fn(work_time)

        missed = math.floor(work_time / self.tick_interval)
        if work_time > self.tick_interval:
            self.dropped += missed
            log.warning("warning: %s dropped %d calls", self.name, missed)
            if self.metrics is not None:
                self.metrics.record_drop(missed)

        # next untouched grid point after start_work, as a delay from now
        next_delay = start_work + (missed + 1) * self.tick_interval - finish_work
        self.last_tick = start_work
        if log.isEnabledFor(logging.DEBUG):
            log.debug(
                "%s: startWork: %.1f, finishWork: %.1f, workTime: %.1f, nextTick in %.1f (%s)",
                self.name, start_work, finish_work, work_time, next_delay, fmt_ms(finish_work + next_delay),
            )
        if self.metrics is not None:
            self.metrics.record_tick(start_work, work_time, self.tick_interval)

        # stop() inside work_fn clears the handle; stay idle then
        if self._handle is not None:
            # re-arming without cancelling the fired handle first lets some
            # hosts add the elapsed work time on top of the new delay
            self._handle.cancel()
            self._handle = self._schedule(next_delay)


def create(
    frequency: Optional[float] = None,
    work_fn: Optional[Callable[[], None]] = None,
    warn_fn: Optional[Callable[[float], None]] = None,
    **kwargs,
) -> FixedIntervalTicker:
    return FixedIntervalTicker(frequency, work_fn, warn_fn, **kwargs)
