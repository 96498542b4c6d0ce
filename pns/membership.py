from __future__ import annotations

from typing import Any

from .docker_ops import ContainerRef
from .networks import is_eligible


class MembershipReader:
    """Reads the proxy's current and desired network membership from the runtime.

    Both reads go to the daemon every time. A failure anywhere raises
    StateReadError and no partial set is returned.
    """

    def __init__(self, runtime: Any, proxy: ContainerRef):
        self.runtime = runtime
        self.proxy = proxy

    def valid_networks(self) -> set[str]:
        valid: set[str] = set()
        for network_id in self.runtime.list_network_ids():
            network = self.runtime.inspect_network(network_id)
            if is_eligible(network, self.proxy.id):
                valid.add(network.id)
        return valid

    def connected_networks(self) -> set[str]:
        return set(self.runtime.container_network_ids(self.proxy.id))
