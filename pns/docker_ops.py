from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from .errors import MutationError, ProxyLookupError, RuntimeConnectError, StateReadError
from .networks import NetworkInfo

logger = logging.getLogger("pns")

# docker-py raises its own errors for API failures, but a dropped socket
# surfaces as a plain requests error.
RUNTIME_ERRORS = (DockerException, RequestException)


@dataclass(frozen=True)
class ContainerRef:
    id: str
    name: str


@dataclass(frozen=True)
class RuntimeEvent:
    action: str
    network_id: str
    attributes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "RuntimeEvent":
        actor = message.get("Actor") or {}
        return cls(
            action=message.get("Action") or message.get("status") or "",
            network_id=actor.get("ID") or message.get("id") or "",
            attributes=dict(actor.get("Attributes") or {}),
        )


class EventStream:
    """Iterator of RuntimeEvent over a docker-py event stream."""

    def __init__(self, raw: Any):
        self._raw = raw

    def __iter__(self) -> Iterator[RuntimeEvent]:
        try:
            for message in self._raw:
                yield RuntimeEvent.from_message(message)
        except RUNTIME_ERRORS as e:
            raise StateReadError(f"Event stream broke: {e}") from e

    def close(self) -> None:
        try:
            self._raw.close()
        except (OSError, AttributeError) as e:
            # The daemon already dropped the connection.
            logger.debug("Event stream close: %s", e)


def event_filters(actions: tuple[str, ...]) -> dict[str, Any]:
    return {"type": "network", "event": list(actions)}


class DockerRuntime:
    """The runtime capability backed by the local Docker daemon.

    This is the only place that talks to docker-py; everything else sees
    NetworkInfo / ContainerRef / RuntimeEvent and the pns error taxonomy.
    """

    def __init__(self, client: docker.DockerClient):
        self.client = client

    @classmethod
    def from_env(cls) -> "DockerRuntime":
        try:
            client = docker.from_env(version="auto")
            client.ping()
        except RUNTIME_ERRORS as e:
            raise RuntimeConnectError(
                f"Unable to reach the Docker daemon. Is /var/run/docker.sock mounted? ({e})"
            ) from e
        return cls(client)

    def find_container(self, name: str) -> ContainerRef:
        # The name filter is a regex over "/<name>"; anchor it so "proxy" does not match "proxy-2".
        try:
            found = self.client.containers.list(all=True, filters={"name": f"^/{re.escape(name)}$"})
        except RUNTIME_ERRORS as e:
            raise RuntimeConnectError(f"Unable to list containers: {e}") from e
        if len(found) != 1:
            raise ProxyLookupError(
                f"Expected exactly one container named '{name}', found {len(found)}."
            )
        return ContainerRef(id=found[0].id, name=found[0].name)

    def list_network_ids(self) -> list[str]:
        try:
            return [n.id for n in self.client.networks.list()]
        except RUNTIME_ERRORS as e:
            raise StateReadError(f"Unable to list networks: {e}") from e

    def inspect_network(self, network_id: str) -> NetworkInfo:
        # The list endpoint omits members, so each network is fetched on its own.
        try:
            net = self.client.networks.get(network_id)
        except RUNTIME_ERRORS as e:
            raise StateReadError(f"Unable to inspect network {network_id}: {e}") from e
        return NetworkInfo.from_attrs(net.attrs)

    def container_network_ids(self, container_id: str) -> set[str]:
        try:
            cont = self.client.containers.get(container_id)
        except NotFound as e:
            raise StateReadError(f"Proxy container {container_id} no longer exists.") from e
        except RUNTIME_ERRORS as e:
            raise StateReadError(f"Unable to inspect container {container_id}: {e}") from e
        networks = (cont.attrs.get("NetworkSettings") or {}).get("Networks") or {}
        return {ep["NetworkID"] for ep in networks.values() if ep.get("NetworkID")}

    def connect(self, network_id: str, container_id: str) -> None:
        try:
            self.client.api.connect_container_to_network(container_id, network_id)
        except RUNTIME_ERRORS as e:
            raise MutationError("join", network_id, str(e)) from e

    def disconnect(self, network_id: str, container_id: str, force: bool = True) -> None:
        try:
            self.client.api.disconnect_container_from_network(container_id, network_id, force=force)
        except RUNTIME_ERRORS as e:
            raise MutationError("leave", network_id, str(e)) from e

    def events(self, actions: tuple[str, ...]) -> EventStream:
        try:
            raw = self.client.events(decode=True, filters=event_filters(actions))
        except RUNTIME_ERRORS as e:
            raise RuntimeConnectError(f"Unable to subscribe to Docker events: {e}") from e
        return EventStream(raw)
