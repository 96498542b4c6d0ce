from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import db
from .docker_ops import ContainerRef
from .membership import MembershipReader


@dataclass(frozen=True)
class MembershipSnapshot:
    valid: frozenset[str]
    connected: frozenset[str]

    def plan(self) -> "ReconciliationPlan":
        return plan_changes(self.valid, self.connected)


@dataclass(frozen=True)
class ReconciliationPlan:
    desired: frozenset[str]
    to_join: tuple[str, ...]
    to_leave: tuple[str, ...]

    @property
    def empty(self) -> bool:
        return not self.to_join and not self.to_leave

    def as_dict(self) -> dict[str, list[str]]:
        return {
            "desired": sorted(self.desired),
            "to_join": list(self.to_join),
            "to_leave": list(self.to_leave),
        }


def plan_changes(valid: set[str] | frozenset[str], connected: set[str] | frozenset[str]) -> ReconciliationPlan:
    """Diff desired vs. actual membership. Sorted so runs are reproducible."""
    return ReconciliationPlan(
        desired=frozenset(valid),
        to_join=tuple(sorted(set(valid) - set(connected))),
        to_leave=tuple(sorted(set(connected) - set(valid))),
    )


class Reconciler:
    """Brings the proxy's network membership in line with the eligibility rule.

    Every call re-reads the full state (one inspect per network); nothing from
    the triggering event or an earlier cycle is reused.
    """

    def __init__(self, runtime: Any, proxy: ContainerRef, reader: MembershipReader | None = None):
        self.runtime = runtime
        self.proxy = proxy
        self.reader = reader or MembershipReader(runtime, proxy)

    def snapshot(self) -> MembershipSnapshot:
        valid = self.reader.valid_networks()
        connected = self.reader.connected_networks()
        return MembershipSnapshot(valid=frozenset(valid), connected=frozenset(connected))

    def plan(self) -> ReconciliationPlan:
        return self.snapshot().plan()

    def reconcile(self) -> ReconciliationPlan:
        """Run one read-diff-apply cycle and return the applied plan.

        Joins go first so the proxy keeps what it can reach while leaving the
        rest. The first failing call raises MutationError and the remaining
        actions are dropped until the next cycle.
        """
        plan = self.plan()
        if plan.empty:
            return plan

        db.log_event(
            "INFO",
            f"Plan for {self.proxy.name}: join {len(plan.to_join)}, leave {len(plan.to_leave)}",
        )
        for network_id in plan.to_join:
            self.runtime.connect(network_id, self.proxy.id)
            db.log_event("INFO", f"Joined {self.proxy.name} to network", network_id=network_id)
        for network_id in plan.to_leave:
            self.runtime.disconnect(network_id, self.proxy.id, force=True)
            db.log_event("INFO", f"Removed {self.proxy.name} from network", network_id=network_id)
        return plan
