"""Cron-driven job scheduler.

Each job owns one worker thread. A worker sleeps until the next cron tick,
runs the job to completion and only then computes the following tick, so a
job never overlaps itself and ticks missed while it ran are skipped. A job
that raises is logged; its worker keeps going and the other jobs are not
affected.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from croniter import croniter

logger = logging.getLogger(__name__)

JobAction = Callable[[], Any]


@dataclass(slots=True)
class JobState:
    """Runtime state for one scheduled job."""

    name: str
    cadence: str
    action: JobAction
    next_due: Optional[datetime] = None
    runs: int = 0
    failures: int = 0
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    running: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def schedule_after(self, now: datetime) -> datetime:
        # Never hand out the same tick twice, even if the worker woke early.
        base = now if self.next_due is None else max(now, self.next_due)
        self.next_due = croniter(self.cadence, base).get_next(datetime)
        return self.next_due

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'cadence': self.cadence,
            'running': self.running,
            'runs': self.runs,
            'failures': self.failures,
            'last_run_iso': self.last_run.isoformat() if self.last_run else None,
            'last_error': self.last_error,
            'next_due_iso': self.next_due.isoformat() if self.next_due else None,
        }


class SchedulerEngine:
    """Run a set of independently timed jobs on their own threads."""

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._jobs: Dict[str, JobState] = {}
        self._threads: List[threading.Thread] = []
        self._stop = threading.Event()

    @property
    def job_names(self) -> List[str]:
        return list(self._jobs)

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def add_job(self, name: str, cadence: str, action: JobAction) -> JobState:
        if name in self._jobs:
            raise ValueError(f"job {name!r} is already registered")
        if not croniter.is_valid(cadence):
            raise ValueError(f"invalid cadence for job {name!r}: {cadence!r}")
        if self._threads:
            raise RuntimeError('jobs must be registered before the scheduler starts')
        state = JobState(name=name, cadence=cadence, action=action)
        self._jobs[name] = state
        return state

    def start(self) -> None:
        if self.running:
            if self._stop.is_set():
                raise RuntimeError('scheduler workers from the previous run are still finishing')
            return
        self._stop.clear()
        self._threads = []
        for state in self._jobs.values():
            thread = threading.Thread(target=self._worker, args=(state,), name=f"job-{state.name}", daemon=True)
            self._threads.append(thread)
            thread.start()
        logger.info("scheduler started with jobs: %s", ', '.join(self._jobs) or '<none>')

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=timeout)
        # A worker stuck in a long job stays tracked until it returns.
        self._threads = [thread for thread in self._threads if thread.is_alive()]
        if self._threads:
            logger.warning("scheduler workers still running after stop: %s", ', '.join(t.name for t in self._threads))

    def run_job(self, name: str) -> bool:
        """Run job *name* now on the calling thread; returns ``True`` on success."""

        try:
            state = self._jobs[name]
        except KeyError as exc:
            available = ', '.join(sorted(self._jobs)) or '<none>'
            raise KeyError(f"unknown job {name!r}. Available: {available}") from exc
        return self._execute(state)

    def status(self) -> List[Dict[str, Any]]:
        return [state.to_dict() for state in self._jobs.values()]

    def _worker(self, state: JobState) -> None:
        while not self._stop.is_set():
            due = state.schedule_after(self._clock())
            delay = (due - self._clock()).total_seconds()
            if self._stop.wait(max(delay, 0.0)):
                break
            self._execute(state)

    def _execute(self, state: JobState) -> bool:
        with state.lock:
            state.running = True
            state.last_run = self._clock()
            try:
                state.action()
            except Exception as exc:  # pylint: disable=broad-except
                state.failures += 1
                state.last_error = str(exc) or type(exc).__name__
                logger.exception("scheduled job %r failed", state.name)
                return False
            else:
                state.last_error = None
                return True
            finally:
                state.runs += 1
                state.running = False
