from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

BRIDGE_DRIVER = "bridge"
DEFAULT_BRIDGE_OPTION = "com.docker.network.bridge.default_bridge"


@dataclass(frozen=True)
class NetworkInfo:
    """Point-in-time view of one Docker network, as returned by a network inspect."""

    id: str
    name: str = ""
    driver: str = ""
    options: dict[str, str] = field(default_factory=dict)
    containers: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_attrs(cls, attrs: dict[str, Any]) -> "NetworkInfo":
        # The daemon sends null rather than {} for networks without options/members.
        return cls(
            id=attrs["Id"],
            name=attrs.get("Name") or "",
            driver=attrs.get("Driver") or "",
            options=dict(attrs.get("Options") or {}),
            containers=dict(attrs.get("Containers") or {}),
        )

    @property
    def is_default_bridge(self) -> bool:
        return self.options.get(DEFAULT_BRIDGE_OPTION) == "true"


def is_eligible(network: NetworkInfo, proxy_id: str) -> bool:
    """Should the proxy container be a member of this network?

    Only bridge networks qualify. A bridge network is served when it is the
    host's default bridge, when it is shared by several containers, or when a
    single container other than the proxy sits on it alone.
    """
    if network.driver != BRIDGE_DRIVER:
        return False
    members = len(network.containers)
    return (
        network.is_default_bridge
        or members > 1
        or (members == 1 and proxy_id not in network.containers)
    )
