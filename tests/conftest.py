import os as _os
import sys

import pytest

# Ensure project root is importable when the package is not installed.
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from pns import db  # noqa: E402
from pns.docker_ops import ContainerRef, RuntimeEvent  # noqa: E402
from pns.errors import MutationError, RuntimeConnectError, StateReadError  # noqa: E402
from pns.networks import DEFAULT_BRIDGE_OPTION, NetworkInfo  # noqa: E402

PROXY_ID = "proxy0000000000000000000000000000"


class FakeStream:
    def __init__(self, events, error=None):
        self.events = list(events)
        self.error = error
        self.closed = False

    def __iter__(self):
        for ev in self.events:
            yield ev
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True


class FakeRuntime:
    """In-memory stand-in for DockerRuntime.

    Membership is kept consistent on both sides: connecting the proxy adds it
    to the network's member list, which changes how the network is classified.
    """

    def __init__(self, proxy_id=PROXY_ID):
        self.proxy_id = proxy_id
        self.networks = {}
        self.memberships = {proxy_id: set()}
        self.calls = []
        self.fail_on = {}
        self.streams = []
        self.subscriptions = []

    def add_network(self, network_id, driver="bridge", members=(), default_bridge=False):
        options = {DEFAULT_BRIDGE_OPTION: "true"} if default_bridge else {}
        self.networks[network_id] = NetworkInfo(
            id=network_id,
            name=network_id,
            driver=driver,
            options=options,
            containers={m: {} for m in members},
        )
        for m in members:
            self.memberships.setdefault(m, set()).add(network_id)

    def _maybe_fail(self, op):
        err = self.fail_on.get(op)
        if err is not None:
            raise err

    def find_container(self, name):
        return ContainerRef(id=self.proxy_id, name=name)

    def list_network_ids(self):
        self._maybe_fail("list")
        return sorted(self.networks)

    def inspect_network(self, network_id):
        self._maybe_fail("inspect")
        if network_id not in self.networks:
            raise StateReadError(f"Unable to inspect network {network_id}: not found")
        return self.networks[network_id]

    def container_network_ids(self, container_id):
        self._maybe_fail("container")
        if container_id not in self.memberships:
            raise StateReadError(f"Proxy container {container_id} no longer exists.")
        return set(self.memberships[container_id])

    def _set_member(self, network_id, container_id, present):
        net = self.networks[network_id]
        containers = dict(net.containers)
        if present:
            containers[container_id] = {}
            self.memberships[container_id].add(network_id)
        else:
            containers.pop(container_id, None)
            self.memberships[container_id].discard(network_id)
        self.networks[network_id] = NetworkInfo(
            id=net.id, name=net.name, driver=net.driver, options=net.options, containers=containers
        )

    def connect(self, network_id, container_id):
        self.calls.append(("join", network_id))
        if network_id in self.fail_on.get("connect_ids", ()):
            raise MutationError("join", network_id, "refused")
        self._set_member(network_id, container_id, True)

    def disconnect(self, network_id, container_id, force=True):
        self.calls.append(("leave", network_id))
        if network_id in self.fail_on.get("disconnect_ids", ()):
            raise MutationError("leave", network_id, "refused")
        self._set_member(network_id, container_id, False)

    def events(self, actions):
        self.subscriptions.append(tuple(actions))
        if not self.streams:
            raise RuntimeConnectError("Unable to subscribe to Docker events: socket gone")
        return self.streams.pop(0)


def network_event(network_id, action="connect"):
    return RuntimeEvent(action=action, network_id=network_id)


@pytest.fixture(autouse=True)
def journal(tmp_path, monkeypatch):
    """Isolated sqlite event journal per test."""
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "pns.db"))
    db.init_db()
    return db


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def proxy():
    return ContainerRef(id=PROXY_ID, name="reverse-proxy")
