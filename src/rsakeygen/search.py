"""Concurrent search for probable primes with a shared quota.

A coordinator keeps drawing random candidates and hands each one to a bounded thread pool. Workers filter and test
their candidate and try to claim a slot in the shared result set; the claim that fills the quota raises the
cancellation event, after which no further results are committed and no new candidates are dispatched. Work already
in flight runs to completion and the coordinator waits for it before returning.

Typical usage example:

    p, q = find_primes(512, 2)
    cfg = SearchConfig(bits=16, target=1, workers=4)
    e, = SearchCoordinator(cfg).run()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
import functools
import logging
import os
import threading
import time
from typing import NamedTuple

from rsakeygen.entropy import RandomSource
from rsakeygen.errors import InvalidArgument
from rsakeygen.errors import PrimalityExhaustion
from rsakeygen.primality import _sieve
from rsakeygen.primality import DEFAULT_WITNESSES
from rsakeygen.primality import PrimalityTester
from rsakeygen.primality import SmallFactorFilter

logger = logging.getLogger(__name__)

# Largest bit size for which the candidate space is small enough to count its primes up front.
_COUNTABLE_BITS: int = 16


class SearchConfig(NamedTuple):
    """Parameters of a single prime search.

    Attributes:
        bits: Size of the primes in bits. Must be a positive multiple of 8.
        target: Number of distinct primes to find.
        witnesses: Miller-Rabin rounds per candidate.
        workers: Size of the worker pool. Defaults to the CPU count.
        exact_length: Whether to force the top bit of every candidate.
        max_candidates: Optional cap on the number of candidates dispatched.
    """
    bits: int
    target: int = 1
    witnesses: int = DEFAULT_WITNESSES
    workers: int | None = None
    exact_length: bool = False
    max_candidates: int | None = None

    @property
    def byte_length(self) -> int:
        return self.bits // 8


class SearchState:
    """Shared state of one search invocation.

    `found` and `results` are only ever touched under `lock`, and `claim` is the only way to add a result, which keeps
    the result set at exactly `target` entries at most.

    Attributes:
        target: The quota.
        found: Number of committed results.
        results: Committed primes in commit order.
        cancelled: Set once the quota is met, or a worker failed.
        error: The first exception raised by a worker, if any.
    """

    def __init__(self, target: int) -> None:
        self.target = target
        self.found = 0
        self.results: list[int] = []
        self.cancelled = threading.Event()
        self.error: BaseException | None = None
        self.lock = threading.Lock()

    def claim(self, value: int) -> bool:
        """Try to commit a confirmed prime.

        Args:
            value: The probable prime.

        Returns:
            True if the value was committed, False if the search is already cancelled or the value is a duplicate.
        """
        with self.lock:
            if self.cancelled.is_set() or value in self.results:
                return False
            self.results.append(value)
            self.found += 1
            if self.found == self.target:
                self.cancelled.set()
            return True

    def fail(self, exc: BaseException) -> None:
        with self.lock:
            if self.error is None:
                self.error = exc
        self.cancelled.set()


@functools.lru_cache(maxsize=None)
def available_primes(bits: int, exact_length: bool = False) -> int | None:
    """Count the odd primes a search of `bits` bits can ever produce.

    Args:
        bits: Candidate size in bits.
        exact_length: Whether candidates have their top bit forced.

    Returns:
        The count, or None if `bits` is too large to count.
    """
    if bits > _COUNTABLE_BITS:
        return None
    low = 1 << (bits - 1) if exact_length else 3
    return sum(1 for p in _sieve((1 << bits) - 1) if p >= low)


class SearchCoordinator:
    """Runs the concurrent candidate search described by a `SearchConfig`.

    Attributes:
        config: The validated search parameters.
        source: Random source for both candidates and witnesses.
        tester: The Miller-Rabin tester workers call.
        sieve: The small factor filter, or None if the candidates are too small to benefit.
    """

    def __init__(self, config: SearchConfig, source: RandomSource | None = None) -> None:
        if config.bits <= 0 or config.bits % 8 != 0:
            raise InvalidArgument(f"Prime size must be a positive multiple of 8 bits, got {config.bits}.")
        if config.target <= 0:
            raise InvalidArgument("Target must be positive.")
        if config.workers is not None and config.workers <= 0:
            raise InvalidArgument("Worker count must be positive.")
        if config.max_candidates is not None and config.max_candidates <= 0:
            raise InvalidArgument("Candidate cap must be positive.")
        cap = available_primes(config.bits, config.exact_length)
        if cap is not None and config.target > cap:
            raise PrimalityExhaustion(f"Only {cap} distinct primes fit in {config.bits} bits, {config.target} requested.")
        self.config = config
        self.source = source if source is not None else RandomSource()
        self.tester = PrimalityTester(config.witnesses, self.source)
        self.sieve: SmallFactorFilter | None = None
        if SmallFactorFilter.applies(config.byte_length):
            self.sieve = SmallFactorFilter.for_byte_length(config.byte_length)

    @property
    def workers(self) -> int:
        return self.config.workers or os.cpu_count() or 1

    def _examine(self, candidate: int, state: SearchState) -> None:
        """Worker body: filter, test and claim a single candidate."""
        if self.sieve is not None and self.sieve.reject(candidate):
            return
        if self.tester(candidate) and state.claim(candidate):
            logger.debug("Committed prime %d/%d (%d bits).", state.found, state.target, candidate.bit_length())

    @staticmethod
    def _settle(state: SearchState, slots: threading.Semaphore, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            state.fail(exc)
        slots.release()

    def run(self) -> list[int]:
        """Search until `target` distinct probable primes have been committed.

        Returns:
            The primes in commit order. Exactly `target` of them.

        Raises:
            PrimalityExhaustion: If `max_candidates` candidates were dispatched without meeting the quota.
            Exception: Whatever a worker raised, after the pool has drained.
        """
        cfg = self.config
        state = SearchState(cfg.target)
        workers = self.workers
        slots = threading.Semaphore(2 * workers)
        settle = functools.partial(self._settle, state, slots)
        dispatched = 0
        started = time.perf_counter()
        logger.debug("Searching %d prime(s) of %d bits on %d workers.", cfg.target, cfg.bits, workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prime-search") as executor:
            while not state.cancelled.is_set():
                if cfg.max_candidates is not None and dispatched >= cfg.max_candidates:
                    break
                slots.acquire()
                if state.cancelled.is_set():
                    slots.release()
                    break
                candidate = self.source.candidate(cfg.byte_length, cfg.exact_length)
                dispatched += 1
                executor.submit(self._examine, candidate, state).add_done_callback(settle)
        logger.debug("Search drained after %d candidates in %.3fs.", dispatched, time.perf_counter() - started)
        if state.error is not None:
            raise state.error
        if state.found < cfg.target:
            raise PrimalityExhaustion(
                f"Dispatched {dispatched} candidates and found only {state.found} of {cfg.target} primes.")
        return list(state.results)


def find_primes(bits: int,
                count: int = 1,
                witnesses: int = DEFAULT_WITNESSES,
                workers: int | None = None,
                exact_length: bool = False,
                max_candidates: int | None = None,
                source: RandomSource | None = None) -> list[int]:
    """Find `count` distinct probable primes of `bits` bits.

    Args:
        bits: Size of the primes in bits. Must be a positive multiple of 8.
        count: Number of primes to find.
        witnesses: Miller-Rabin rounds per candidate.
        workers: Size of the worker pool. Defaults to the CPU count.
        exact_length: Whether to force the top bit, so every prime has exactly `bits` bits.
        max_candidates: Optional cap on the number of candidates tried.
        source: Random source. Defaults to a secure one.

    Returns:
        The primes in the order they were found.
    """
    cfg = SearchConfig(bits, count, witnesses, workers, exact_length, max_candidates)
    return SearchCoordinator(cfg, source).run()
