# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Session state machine, interrupt handling, and exactly-once teardown.

The supervisor owns the single ``ClusterHandle`` of a session. It provisions
through the provisioner, idles on an event until SIGINT/SIGTERM arrives, and
then tears the cluster down behind a one-shot latch::

    PROVISIONING -> READY -> INTERRUPTED -> TEARING_DOWN -> TERMINATED
    PROVISIONING -> TERMINATED            (create failed)

Signal handlers only count the signal and set an event, so they never block
and never re-enter teardown. An interrupt received while provisioning is held
until the cluster is ready, then handled like any other.
"""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Protocol

from rich.markup import escape

from devcluster import console, err_console, logger
from devcluster.config import ClusterHandle, ClusterSpec
from devcluster.constants import (
    EXIT_FAILURE,
    EXIT_OK,
    IDLE_TICK_SECONDS,
    MSG_DELETION_COMPLETE,
    MSG_EXIT_HINT,
    MSG_SHUTTING_DOWN,
)
from devcluster.errors import ProvisioningError


class SessionState(str, Enum):
    PROVISIONING = "provisioning"
    READY = "ready"
    INTERRUPTED = "interrupted"
    TEARING_DOWN = "tearing-down"
    TERMINATED = "terminated"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.PROVISIONING: frozenset({SessionState.READY, SessionState.TERMINATED}),
    SessionState.READY: frozenset({SessionState.INTERRUPTED}),
    SessionState.INTERRUPTED: frozenset({SessionState.TEARING_DOWN}),
    SessionState.TEARING_DOWN: frozenset({SessionState.TERMINATED}),
    SessionState.TERMINATED: frozenset(),
}

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Provisioner(Protocol):
    def create(self, spec: ClusterSpec) -> ClusterHandle: ...

    def destroy(self, name: str, registry_name: str | None = None) -> object: ...


class LifecycleSupervisor:
    """Drives one dev cluster session from provisioning to teardown.

    Args:
        provisioner: Creates and destroys the cluster.
        tick_seconds: Granularity of the idle wait while ready.
        signals: Signals that request teardown.
    """

    def __init__(
        self,
        provisioner: Provisioner,
        tick_seconds: float = IDLE_TICK_SECONDS,
        signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        self._provisioner = provisioner
        self._tick = tick_seconds
        self._signals = tuple(signals)
        self._previous_handlers: dict[signal.Signals, object] = {}

        self._state = SessionState.PROVISIONING
        self.history: list[SessionState] = [self._state]
        self._handle: ClusterHandle | None = None
        self.exit_code: int | None = None

        self._interrupted = threading.Event()
        self._ready = threading.Event()
        self._interrupt_count = 0
        self._latch = threading.Lock()
        self._teardown_started = False

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def handle(self) -> ClusterHandle | None:
        return self._handle

    @property
    def interrupt_count(self) -> int:
        return self._interrupt_count

    def _transition(self, new: SessionState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Illegal session transition {self._state.value} -> {new.value}")
        logger.debug("Session %s -> %s", self._state.value, new.value)
        self._state = new
        self.history.append(new)

    # -- signals -------------------------------------------------------------

    def notify_interrupt(self, signum: int | None = None, frame: object = None) -> None:
        """Record an interrupt. Safe to call from a signal handler or any thread."""
        self._interrupt_count += 1
        self._interrupted.set()

    def install_signal_handlers(self) -> None:
        """Route the configured signals to :meth:`notify_interrupt`.

        Must be called from the main thread.
        """
        for sig in self._signals:
            self._previous_handlers[sig] = signal.signal(sig, self.notify_interrupt)

    def restore_signal_handlers(self) -> None:
        while self._previous_handlers:
            sig, previous = self._previous_handlers.popitem()
            signal.signal(sig, previous)

    def __enter__(self) -> LifecycleSupervisor:
        self.install_signal_handlers()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore_signal_handlers()

    # -- lifecycle -----------------------------------------------------------

    def provision(self, spec: ClusterSpec) -> ClusterHandle | None:
        """Create the cluster; on failure the session terminates with exit code 1.

        Args:
            spec: What to provision.

        Returns:
            The handle on success, None if creation failed.
        """
        try:
            handle = self._provisioner.create(spec)
        except ProvisioningError as err:
            err_console.print(f"[red]\u274c {escape(str(err))}[/red]")
            self._transition(SessionState.TERMINATED)
            self.exit_code = EXIT_FAILURE
            return None

        self._handle = handle
        self._transition(SessionState.READY)
        self._ready.set()
        return handle

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the session reaches READY; returns False on timeout."""
        return self._ready.wait(timeout)

    def wait_for_interrupt(self) -> None:
        """Idle until an interrupt arrives, waking once per tick."""
        while not self._interrupted.wait(self._tick):
            pass
        if self._state is SessionState.READY:
            self._transition(SessionState.INTERRUPTED)

    def teardown(self) -> int:
        """Destroy the cluster exactly once and return the session exit code.

        Later calls return the first call's exit code without touching the cluster.
        """
        with self._latch:
            if self._teardown_started:
                logger.debug("Teardown already started; ignoring repeated request")
                return self.exit_code if self.exit_code is not None else EXIT_OK
            self._teardown_started = True

        if self._handle is None:
            # Nothing was provisioned, so there is nothing to destroy.
            if self.exit_code is None:
                self.exit_code = EXIT_OK
            return self.exit_code

        if self._state is SessionState.READY:
            self._transition(SessionState.INTERRUPTED)
        self._transition(SessionState.TEARING_DOWN)

        console.print(f"\n{MSG_SHUTTING_DOWN}\n")
        try:
            self._provisioner.destroy(self._handle.name, registry_name=self._handle.registry_name)
        except ProvisioningError as err:
            err_console.print(f"[red]\u274c {escape(str(err))}[/red]")
            self.exit_code = EXIT_FAILURE
        else:
            console.print(f"\n\n{MSG_DELETION_COMPLETE}")
            self.exit_code = EXIT_OK
        finally:
            self._handle = None
            self._transition(SessionState.TERMINATED)

        ignored = self._interrupt_count - 1
        if ignored > 0:
            logger.info("Ignored %d repeated interrupt(s) during shutdown", ignored)
        return self.exit_code

    def run(
        self,
        spec: ClusterSpec,
        on_ready: Callable[[ClusterHandle], None] | None = None,
    ) -> int:
        """Provision, hand the ready cluster to *on_ready*, idle, then tear down.

        Teardown also runs if *on_ready* raises; the exception propagates afterwards.

        Args:
            spec: What to provision.
            on_ready: Called once with the handle after the cluster is ready.

        Returns:
            Process exit code: 0 after a clean teardown, 1 if create or destroy failed.
        """
        handle = self.provision(spec)
        if handle is None:
            return self.exit_code

        try:
            if on_ready is not None:
                on_ready(handle)
            console.print(f"\n{MSG_EXIT_HINT}")
            self.wait_for_interrupt()
        finally:
            exit_code = self.teardown()
        return exit_code
