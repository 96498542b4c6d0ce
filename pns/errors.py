from __future__ import annotations


class SyncError(Exception):
    """A reconciliation cycle could not complete."""


class RuntimeConnectError(SyncError):
    pass


class StateReadError(SyncError):
    pass


class MutationError(SyncError):
    def __init__(self, action: str, network_id: str, message: str):
        super().__init__(f"{action} {network_id}: {message}")
        self.action = action
        self.network_id = network_id


class ProxyLookupError(Exception):
    """Zero or several containers match the configured proxy name."""


class FailureBudgetExceeded(Exception):
    def __init__(self, failures: int):
        super().__init__(f"{failures} consecutive reconciliation failures")
        self.failures = failures
