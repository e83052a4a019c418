"""Small helpers: conditions, retries, hashing, safe randomness and timing."""

from __future__ import annotations

import random
import re
import threading
import time
from concurrent.futures import CancelledError
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

__all__ = [
    "and_condition",
    "slice_to_set",
    "cron",
    "OpenCircuitExec",
    "fnv_hash",
    "raise_if_error",
    "retry",
    "retry_linear_jitter",
    "retry_exponential",
    "SafeRand",
    "stop_with_timeout",
    "stop_with_event",
    "atoi",
    "parse_int",
    "parse_uint",
    "parse_float",
    "coarse_now",
]


def and_condition(*args: Callable[[], bool]) -> bool:
    """Evaluate the callables in order; stop at the first false one."""
    return all(cond() for cond in args)


def slice_to_set(items: Iterable[Any]) -> set:
    """Collect the items into a set."""
    return set(items)


def cron(stop: threading.Event, interval: float, fn: Callable[[threading.Event], None]) -> threading.Thread:
    """Call ``fn(stop)`` every ``interval`` seconds until ``stop`` is set."""

    def run() -> None:
        while not stop.wait(interval):
            fn(stop)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


@dataclass
class OpenCircuitExec:
    """Runs callables until one fails; afterwards re-raises that failure."""

    err: Optional[BaseException] = None

    def do(self, f: Callable[[], Any]) -> Any:
        if self.err is not None:
            raise self.err
        try:
            return f()
        except Exception as exc:
            self.err = exc
            raise


_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def fnv_hash(data: bytes) -> int:
    """32-bit FNV-1a hash."""
    h = _FNV_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def raise_if_error(err: Optional[BaseException], *args: BaseException) -> None:
    """Raise ``err`` if given, chaining any extra errors as its cause."""
    if err is None:
        return
    if not args:
        raise err
    cause = args[0] if len(args) == 1 else Exception(*args)
    raise err from cause


def retry(f: Callable[[], Any], times: int) -> Any:
    """Call ``f`` up to ``times`` times; return its first success or raise the last failure."""
    last: Optional[Exception] = None
    for _ in range(times):
        try:
            return f()
        except Exception as exc:
            last = exc
    if last is not None:
        raise last
    return None


def _sleep(seconds: float, stop: Optional[threading.Event]) -> None:
    if seconds <= 0:
        return
    if stop is None:
        time.sleep(seconds)
    elif stop.wait(seconds):
        raise CancelledError("stopped")


def _retry_with_waits(f, times, wait_for, stop):
    last: Optional[Exception] = None
    for attempt in range(times):
        try:
            return f()
        except CancelledError:
            raise
        except Exception as exc:
            last = exc
        if stop is not None and stop.is_set():
            raise CancelledError("stopped")
        _sleep(wait_for(attempt), stop)
    if last is not None:
        raise last
    return None


def retry_linear_jitter(
    f: Callable[[], Any],
    times: int,
    wait_between: float,
    jitter_fraction: float,
    stop: Optional[threading.Event] = None,
) -> Any:
    """Retry with a jittered constant wait; wait 1s and jitter 0.1 gives 0.9s..1.1s."""

    def wait_for(_attempt: int) -> float:
        return wait_between * (1 + jitter_fraction * (random.random() * 2 - 1))

    return _retry_with_waits(f, times, wait_for, stop)


def retry_exponential(
    f: Callable[[], Any], times: int, scalar: float, stop: Optional[threading.Event] = None
) -> Any:
    """Retry waiting ``scalar * 2**(attempt-1)`` seconds (no wait after the first attempt)."""

    def wait_for(attempt: int) -> float:
        return scalar * ((1 << attempt) >> 1)

    return _retry_with_waits(f, times, wait_for, stop)


class SafeRand:
    """A lock-protected random generator."""

    def __init__(self, seed: int = 0) -> None:
        self._lock = threading.Lock()
        self._rand = random.Random(seed)

    def seed(self, seed: int) -> None:
        with self._lock:
            self._rand.seed(seed)

    def int63(self) -> int:
        with self._lock:
            return self._rand.getrandbits(63)

    def int63n(self, n: int) -> int:
        if n <= 0:
            raise ValueError("invalid argument to int63n")
        with self._lock:
            return self._rand.randrange(n)

    def uint32(self) -> int:
        with self._lock:
            return self._rand.getrandbits(32)

    def uint64(self) -> int:
        with self._lock:
            return self._rand.getrandbits(64)

    def intn(self, n: int) -> int:
        if n <= 0:
            raise ValueError("invalid argument to intn")
        with self._lock:
            return self._rand.randrange(n)

    def float64(self) -> float:
        with self._lock:
            return self._rand.random()

    def perm(self, n: int) -> list:
        values = list(range(n))
        with self._lock:
            self._rand.shuffle(values)
        return values


def _run_in_background(stop_fn: Callable[[], Any]) -> threading.Event:
    done = threading.Event()

    def run() -> None:
        try:
            stop_fn()
        finally:
            done.set()

    threading.Thread(target=run, daemon=True).start()
    return done


def stop_with_timeout(stop_fn: Callable[[], Any], timeout: float) -> bool:
    """Run ``stop_fn`` in the background; return whether it finished within ``timeout``."""
    return _run_in_background(stop_fn).wait(timeout)


def stop_with_event(stop: threading.Event, stop_fn: Callable[[], Any]) -> bool:
    """Run ``stop_fn`` until it finishes or ``stop`` is set; return whether it finished."""
    done = _run_in_background(stop_fn)
    while not done.is_set() and not stop.is_set():
        done.wait(0.01)
    return done.is_set()


_SIGNED = re.compile(r"[+-]?[0-9A-Za-z]+(\.[0-9]*)?")


def _text(b: bytes | str) -> str:
    return b.decode() if isinstance(b, (bytes, bytearray)) else b


def _strict(s: str) -> str:
    if not s or s != s.strip() or "_" in s:
        raise ValueError(f"invalid syntax: {s!r}")
    return s


def atoi(b: bytes | str) -> int:
    """Parse a base-10 integer with an optional sign and nothing else."""
    s = _text(b)
    if not re.fullmatch(r"[+-]?[0-9]+", s):
        raise ValueError(f"invalid syntax: {s!r}")
    return int(s)


def parse_int(b: bytes | str, base: int = 10) -> int:
    """Parse an integer in ``base`` (0 means the prefix decides)."""
    return int(_strict(_text(b)), base)


def parse_uint(b: bytes | str, base: int = 10) -> int:
    """Parse an unsigned integer in ``base``."""
    s = _strict(_text(b))
    if s[0] in "+-":
        raise ValueError(f"invalid syntax: {s!r}")
    return int(s, base)


def parse_float(b: bytes | str) -> float:
    """Parse a floating point number."""
    return float(_strict(_text(b)))


_clock_lock = threading.Lock()
_clock = time.time()
_clock_started = False


def _tick() -> None:
    global _clock
    while True:
        time.sleep(0.1)
        _clock = time.time()


def coarse_now() -> datetime:
    """Current time with about 100ms resolution, read from a cached clock."""
    global _clock_started, _clock
    if not _clock_started:
        with _clock_lock:
            if not _clock_started:
                _clock = time.time()
                threading.Thread(target=_tick, daemon=True).start()
                _clock_started = True
    return datetime.fromtimestamp(_clock)