"""Per-repository polling loop that waits on, finds, or forks a Drone build.

The loop ticks on a fixed grid (``TICK_INTERVAL_SEC``) measured from the
moment it starts and races each tick against the repository timeout. A tick
scheduled after the deadline loses and the loop ends in ``TIMED_OUT``; a tick
landing exactly on the deadline still runs.
On every tick the latest build is fetched and handed to ``policy.decide``:

* ``KEEP_WAITING`` prints a wait notice and marks the loop as having waited.
  From then on, lookup and fork failures are treated as transient and the
  loop simply ticks again.
* ``POLL_AGAIN`` keeps ticking quietly while the build is still active.
* ``SEARCH_HISTORY`` picks the first successful build from the history.
* ``FIRE_BUILD`` forks the build with the run's parameters.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, Protocol

from .config import TICK_INTERVAL_SEC, format_duration
from .errors import (
    APIError,
    BuildLookupError,
    HistoryExhaustedError,
    PollTimeoutError,
    TriggerError,
)
from .models import BuildRecord, RepositoryRef
from .params import log_params
from .policy import Decision, Mode, decide, select_last_successful


class BuildClient(Protocol):
    def build_last(self, owner: str, name: str, branch: str = "") -> BuildRecord:
        ...

    def build_list(self, owner: str, name: str) -> List[BuildRecord]:
        ...

    def build_fork(self, owner: str, name: str, number: int,
                   params: Optional[Mapping[str, str]] = None) -> BuildRecord:
        ...


class PollState(Enum):
    TICKING = "ticking"
    WAITING_RETRY = "waiting-retry"
    DECIDING = "deciding"
    TRIGGERING = "triggering"
    DONE = "done"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PollState.DONE, PollState.TIMED_OUT, PollState.FAILED})


class BuildPollLoop:
    """Drive one repository to a triggered build, a tolerated skip, or an error."""

    def __init__(
        self,
        client: BuildClient,
        ref: RepositoryRef,
        mode: Mode,
        params: Mapping[str, str],
        timeout: float,
        ignore_missing: bool = False,
        params_from_env: Iterable[str] = (),
        tick_interval: float = TICK_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.ref = ref
        self.mode = mode
        self.params = dict(params)
        self.timeout = timeout
        self.ignore_missing = ignore_missing
        self.params_from_env = tuple(params_from_env)
        self.tick_interval = tick_interval
        self.clock = clock
        self.sleep = sleep

        self.state = PollState.TICKING
        self.already_waited_once = False
        self.ticks = 0
        self.forked: Optional[BuildRecord] = None

    def run(self) -> PollState:
        """Tick until a terminal state; returns ``DONE`` or ``FAILED`` (skipped).

        Raises ``PollTimeoutError`` when the deadline wins, and the lookup,
        history, or trigger error when a failure is not tolerated.
        """
        start = self.clock()
        deadline = start + self.timeout
        next_tick = start + self.tick_interval

        while True:
            if next_tick > deadline:
                self._sleep_until(deadline)
                self.state = PollState.TIMED_OUT
                raise PollTimeoutError(f"Error: timed out waiting on a build for {self.ref}.")

            self._sleep_until(next_tick)
            self.ticks += 1
            self.on_tick()
            if self.state in TERMINAL_STATES:
                return self.state

            # Ticks missed during a slow request are dropped, not replayed.
            now = self.clock()
            next_tick += self.tick_interval
            while next_tick <= now:
                next_tick += self.tick_interval

    def on_tick(self) -> None:
        ref = self.ref
        try:
            build = self.client.build_last(ref.owner, ref.name, ref.branch)
        except APIError as exc:
            if self.already_waited_once:
                return
            self.state = PollState.FAILED
            if self.ignore_missing:
                print(f"Error: unable to get latest build for {ref}, skipping")
                return
            raise BuildLookupError(f"Error: unable to get latest build for {ref}.") from exc

        self.state = PollState.DECIDING
        decision = decide(build, self.mode, self.already_waited_once)

        if decision is Decision.KEEP_WAITING:
            print(
                f"BuildLast for repository: {ref}, returned build number: {build.number} "
                f"with a status of {build.status}. Will retry for {format_duration(self.timeout)}."
            )
            self.already_waited_once = True
            self.state = PollState.WAITING_RETRY
            return
        if decision is Decision.POLL_AGAIN:
            self.state = PollState.WAITING_RETRY
            return
        if decision is Decision.SEARCH_HISTORY:
            build = self._last_successful()

        self._trigger(build)

    def _last_successful(self) -> BuildRecord:
        ref = self.ref
        try:
            builds = self.client.build_list(ref.owner, ref.name)
        except APIError as exc:
            self.state = PollState.FAILED
            raise BuildLookupError(f"Error: unable to get build list for {ref}.") from exc

        build = select_last_successful(builds, ref.branch)
        if build is None:
            self.state = PollState.FAILED
            raise HistoryExhaustedError(f"Error: unable to get last successful build for {ref}.")
        return build

    def _trigger(self, build: BuildRecord) -> None:
        ref = self.ref
        self.state = PollState.TRIGGERING
        try:
            self.forked = self.client.build_fork(ref.owner, ref.name, build.number, self.params)
        except APIError as exc:
            if self.already_waited_once:
                self.state = PollState.WAITING_RETRY
                return
            self.state = PollState.FAILED
            raise TriggerError(f"Error: unable to trigger a new build for {ref}.") from exc

        print(f"Starting new build {build.number} for {ref}.")
        log_params(self.params, self.params_from_env)
        self.state = PollState.DONE

    def _sleep_until(self, target: float) -> None:
        delay = target - self.clock()
        if delay > 0:
            self.sleep(delay)


__all__ = ["BuildClient", "PollState", "TERMINAL_STATES", "BuildPollLoop"]
