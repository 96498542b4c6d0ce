from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock

from .docker_ops import ContainerRef
from .reconciler import ReconciliationPlan

PHASE_STARTING = "starting"
PHASE_IDLE = "idle"
PHASE_RECONCILING = "reconciling"
PHASE_TERMINATED = "terminated"


def utc_now() -> str:
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class SyncStatus:
    phase: str = PHASE_STARTING
    proxy: ContainerRef | None = None
    event_actions: tuple[str, ...] = ()
    consecutive_failures: int = 0
    max_consecutive_failures: int = 0
    cycles: int = 0
    last_success_at: str | None = None
    last_failure_at: str | None = None
    last_error: str | None = None
    desired_networks: tuple[str, ...] = ()
    last_plan: dict[str, list[str]] = field(default_factory=dict)
    started_at: str = field(default_factory=utc_now)


class RuntimeState:
    """Status of the sync loop, shared with the status API.

    Written only by the loop thread; readers get an immutable copy.
    """

    def __init__(self) -> None:
        self.lock = Lock()
        self._status = SyncStatus()

    def snapshot(self) -> SyncStatus:
        with self.lock:
            return self._status

    def configure(self, proxy: ContainerRef, event_actions: tuple[str, ...], max_failures: int) -> None:
        with self.lock:
            self._status = replace(
                self._status,
                proxy=proxy,
                event_actions=tuple(event_actions),
                max_consecutive_failures=max_failures,
            )

    def set_phase(self, phase: str) -> None:
        with self.lock:
            self._status = replace(self._status, phase=phase)

    def record_success(self, plan: ReconciliationPlan) -> None:
        with self.lock:
            self._status = replace(
                self._status,
                cycles=self._status.cycles + 1,
                consecutive_failures=0,
                last_success_at=utc_now(),
                desired_networks=tuple(sorted(plan.desired)),
                last_plan=plan.as_dict(),
            )

    def record_failure(self, error: Exception, consecutive_failures: int) -> None:
        with self.lock:
            self._status = replace(
                self._status,
                cycles=self._status.cycles + 1,
                consecutive_failures=consecutive_failures,
                last_failure_at=utc_now(),
                last_error=f"{type(error).__name__}: {error}",
            )
