"""Blame lookup service.

Orchestrates cache check, ``git blame``, ``git show``, parsing and cache
store for one ``(file, line)`` key. Every failure mode is absorbed here: the
caller either gets an ``Attribution`` (possibly the sentinel) or ``None``
meaning "show nothing".

Concurrency:
- ``lookup`` is blocking and single-flight per key; concurrent callers for
  the same key share one blame+show pair.
- ``submit``/``alookup`` run on a worker pool. A newer request supersedes
  older pending ones, which resolve to ``None`` instead of blocking. The git
  process behind a superseded request is left to finish.
"""

from __future__ import annotations

import asyncio
import threading
from collections import Counter
from concurrent.futures import Future, InvalidStateError, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from schemas.blame import SENTINEL, Attribution, BlameKey, LookupOutcome
from storage.blame_cache import BlameCache
from tools import attribution as attr
from tools.git import GitInvoker, GitRunner, working_dir_for

logger = structlog.get_logger(__name__)


@dataclass
class LookupStats:
    """Execution counters, mainly used by tests to assert subprocess counts."""

    blame_runs: int = 0
    show_runs: int = 0
    cache_hits: int = 0
    outcomes: Counter = field(default_factory=Counter)


def _resolve_quietly(fut: Future, value: Optional[Attribution]) -> None:
    try:
        fut.set_result(value)
    except InvalidStateError:
        # Already resolved by a competing path
        pass


class BlameService:
    """Owns the cache and the git invoker for blame lookups.

    Args:
        git: Invoker used for blame/show; defaults to ``GitRunner``.
        cache: Cache instance; a fresh unbounded one when omitted.
        workers: Pool size for ``submit``/``alookup``.
    """

    def __init__(
        self,
        *,
        git: GitInvoker | None = None,
        cache: BlameCache | None = None,
        workers: int = 2,
    ) -> None:
        self.git = git if git is not None else GitRunner()
        self.cache = cache if cache is not None else BlameCache()
        self._workers = workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._inflight: Dict[BlameKey, Future] = {}
        self._pending: List[Future] = []
        self._generation = 0
        self._stats = LookupStats()

    # -----------------------------
    # Blocking lookup
    # -----------------------------

    def lookup(self, file_path: str, line: int) -> Attribution | None:
        """Return the attribution for ``file_path:line`` or None to suppress."""
        key = BlameKey(file_path=file_path, line=line)
        with self._lock:
            hit = self.cache.get(key)
            if hit is not None:
                self._stats.cache_hits += 1
                self._stats.outcomes[LookupOutcome.CACHED] += 1
                return hit
            shared = self._inflight.get(key)
            if shared is None:
                shared = Future()
                self._inflight[key] = shared
                leader = True
            else:
                leader = False

        if not leader:
            return shared.result()

        try:
            result = self._resolve(key)
            if result is not None:
                self.cache.put(key, result)
            shared.set_result(result)
            return result
        except BaseException as e:
            shared.set_exception(e)
            raise
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def _resolve(self, key: BlameKey) -> Attribution | None:
        with self._lock:
            self._stats.blame_runs += 1
        blame = self.git.blame_line(key.file_path, key.line)
        if not blame:
            self._record(LookupOutcome.NO_BLAME_DATA)
            logger.debug("blame_lookup_no_data", key=str(key))
            return None

        commit_hash = attr.extract_commit_hash(blame)
        if attr.is_uncommitted(commit_hash):
            self._record(LookupOutcome.UNCOMMITTED)
            logger.debug("blame_lookup_uncommitted", key=str(key))
            return SENTINEL

        with self._lock:
            self._stats.show_runs += 1
        shown = self.git.show_commit(commit_hash, cwd=working_dir_for(key.file_path))
        if not shown or attr.is_git_failure(shown):
            self._record(LookupOutcome.GIT_FAILURE)
            logger.debug("blame_lookup_git_failure", key=str(key), commit=commit_hash)
            return SENTINEL

        try:
            result = attr.parse_show_line(shown)
        except attr.AttributionParseError:
            self._record(LookupOutcome.MALFORMED)
            logger.debug("blame_lookup_malformed", key=str(key), raw=shown)
            return attr.parse_or_fallback(shown)

        self._record(LookupOutcome.RESOLVED)
        logger.debug("blame_lookup_resolved", key=str(key), commit=commit_hash)
        return result

    def _record(self, outcome: LookupOutcome) -> None:
        with self._lock:
            self._stats.outcomes[outcome] += 1

    # -----------------------------
    # Pooled / async lookup
    # -----------------------------

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._workers, thread_name_prefix="blamelens"
                )
            return self._executor

    def submit(self, file_path: str, line: int) -> Future:
        """Run ``lookup`` on the worker pool.

        Supersedes every earlier pending request: those futures resolve to
        None right away.
        """
        pool = self._pool()
        caller: Future = Future()
        with self._lock:
            self._generation += 1
            generation = self._generation
            stale = self._pending
            self._pending = [caller]
        for fut in stale:
            self._supersede(fut)

        work = pool.submit(self.lookup, file_path, line)

        def _done(w: Future) -> None:
            with self._lock:
                current = generation == self._generation
                if caller in self._pending:
                    self._pending.remove(caller)
            if caller.done():
                return
            if not current:
                self._supersede(caller)
                return
            exc = w.exception()
            if exc is not None:
                try:
                    caller.set_exception(exc)
                except InvalidStateError:
                    pass
            else:
                _resolve_quietly(caller, w.result())

        work.add_done_callback(_done)
        return caller

    async def alookup(self, file_path: str, line: int) -> Attribution | None:
        """Awaitable ``submit``; resolves to None when superseded."""
        return await asyncio.wrap_future(self.submit(file_path, line))

    def cancel_pending(self) -> int:
        """Resolve every pending submitted request to None."""
        with self._lock:
            stale = self._pending
            self._pending = []
            self._generation += 1
        for fut in stale:
            self._supersede(fut)
        return len(stale)

    def _supersede(self, fut: Future) -> None:
        if fut.done():
            return
        self._record(LookupOutcome.SUPERSEDED)
        _resolve_quietly(fut, None)

    # -----------------------------
    # Cache helpers
    # -----------------------------

    def dump_cache(self) -> list[tuple[BlameKey, Attribution]]:
        return self.cache.items()

    def clear_cache(self) -> int:
        removed = self.cache.clear()
        logger.info("blame_cache_cleared", removed=removed)
        return removed

    @property
    def stats(self) -> LookupStats:
        return self._stats

    def close(self) -> None:
        """Shut down the worker pool without waiting for git to exit."""
        self.cancel_pending()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
