from __future__ import annotations

import time
from typing import Any

from . import db
from .errors import FailureBudgetExceeded, SyncError
from .reconciler import ReconciliationPlan, Reconciler
from .runtime import PHASE_IDLE, PHASE_RECONCILING, PHASE_TERMINATED, RuntimeState


class Syncer:
    """Runs a full reconciliation for every matching Docker network event.

    Events are handled one at a time on the calling thread. Consecutive
    failures are counted; once the count goes past max_consecutive_failures
    the loop raises FailureBudgetExceeded instead of retrying forever.
    """

    def __init__(
        self,
        runtime: Any,
        reconciler: Reconciler,
        event_actions: tuple[str, ...] = ("connect", "disconnect"),
        max_consecutive_failures: int = 10,
        resubscribe_delay_s: float = 1.0,
        state: RuntimeState | None = None,
    ):
        self.runtime = runtime
        self.reconciler = reconciler
        self.event_actions = tuple(event_actions)
        self.max_consecutive_failures = max(0, int(max_consecutive_failures))
        self.resubscribe_delay_s = max(0.0, float(resubscribe_delay_s))
        self.state = state or RuntimeState()
        self.consecutive_failures = 0

    def run_once(self) -> ReconciliationPlan | None:
        """One reconciliation cycle. Returns the applied plan, or None if it failed."""
        self.state.set_phase(PHASE_RECONCILING)
        try:
            plan = self.reconciler.reconcile()
        except SyncError as e:
            self.state.set_phase(PHASE_IDLE)
            self._record_failure(e)
            return None
        self.state.set_phase(PHASE_IDLE)

        if self.consecutive_failures:
            db.log_event("INFO", f"Reconciliation recovered after {self.consecutive_failures} failure(s)")
        self.consecutive_failures = 0
        self.state.record_success(plan)
        return plan

    def run_forever(self) -> None:
        """Subscribe to network events and reconcile on each one. Never returns normally.

        A cycle runs right after every (re)subscription, so the proxy
        converges at startup and after any gap in the event stream.
        """
        while True:
            try:
                stream = self.runtime.events(self.event_actions)
            except SyncError as e:
                self._record_failure(e)
                time.sleep(self.resubscribe_delay_s)
                continue

            try:
                db.log_event("INFO", f"Watching network events: {', '.join(self.event_actions)}")
                self.run_once()
                for event in stream:
                    db.logger.debug("Network event %s on %s", event.action, event.network_id[:12])
                    self.run_once()
                self._record_failure(SyncError("Docker event stream closed"))
            except SyncError as e:
                self._record_failure(e)
            finally:
                stream.close()
            time.sleep(self.resubscribe_delay_s)

    def _record_failure(self, error: SyncError) -> None:
        self.consecutive_failures += 1
        self.state.record_failure(error, self.consecutive_failures)
        db.log_event(
            "ERROR",
            f"Reconciliation failed ({self.consecutive_failures}/{self.max_consecutive_failures}): "
            f"{type(error).__name__}: {error}",
        )
        if self.consecutive_failures > self.max_consecutive_failures:
            self.state.set_phase(PHASE_TERMINATED)
            raise FailureBudgetExceeded(self.consecutive_failures) from error
