import json

import pytest

from conftest import FakeRuntime, FakeStream, PROXY_ID
from pns import __main__ as entry
from pns.errors import ProxyLookupError, RuntimeConnectError


@pytest.fixture
def fake_runtime(monkeypatch):
    rt = FakeRuntime()
    monkeypatch.setattr(entry.DockerRuntime, "from_env", classmethod(lambda cls: rt))
    return rt


def _argv(tmp_path, *extra):
    return ["--db-path", str(tmp_path / "main.db"), "--no-api", *extra]


def test_once_reconciles_and_exits_zero(fake_runtime, tmp_path):
    fake_runtime.add_network("A", members=("web",))
    assert entry.main(_argv(tmp_path, "--once")) == 0
    assert fake_runtime.container_network_ids(PROXY_ID) == {"A"}


def test_once_failure_exits_one(fake_runtime, tmp_path):
    fake_runtime.fail_on["list"] = RuntimeConnectError("daemon gone")
    assert entry.main(_argv(tmp_path, "--once")) == 1


def test_dry_run_prints_plan_without_applying(fake_runtime, tmp_path, capsys):
    fake_runtime.add_network("A", members=("web",))
    assert entry.main(_argv(tmp_path, "--dry-run")) == 0

    plan = json.loads(capsys.readouterr().out)
    assert plan == {"desired": ["A"], "to_join": ["A"], "to_leave": []}
    assert fake_runtime.calls == []


def test_unreachable_daemon_is_fatal(monkeypatch, tmp_path):
    def _boom(cls):
        raise RuntimeConnectError("Unable to reach the Docker daemon")

    monkeypatch.setattr(entry.DockerRuntime, "from_env", classmethod(_boom))
    assert entry.main(_argv(tmp_path)) == 1


def test_missing_proxy_is_fatal(fake_runtime, monkeypatch, tmp_path):
    def _not_found(name):
        raise ProxyLookupError(f"Expected exactly one container named '{name}', found 0.")

    monkeypatch.setattr(fake_runtime, "find_container", _not_found)
    assert entry.main(_argv(tmp_path)) == 1


def test_invalid_event_actions_are_fatal(fake_runtime, tmp_path):
    assert entry.main(_argv(tmp_path, "--event-actions", "restart")) == 1


def test_exhausted_budget_exits_one_and_alerts(fake_runtime, monkeypatch, tmp_path):
    alerts = []
    monkeypatch.setattr(entry, "notify_terminated", lambda proxy, err: alerts.append((proxy, err)))
    fake_runtime.streams = [FakeStream([])]
    fake_runtime.fail_on["container"] = RuntimeConnectError("daemon gone")

    assert entry.main(_argv(tmp_path, "--max-failures", "0")) == 1
    assert alerts and alerts[0][0].id == PROXY_ID


def test_build_settings_overrides(tmp_path):
    args = entry.parse_args(["--proxy-container", "edge", "--max-failures", "3", "--once"])
    cfg = entry.build_settings(args)
    assert cfg.proxy_container == "edge"
    assert cfg.max_consecutive_failures == 3
    assert cfg.api_enabled is False


def test_once_with_exhausted_budget_exits_one_and_alerts(fake_runtime, monkeypatch, tmp_path):
    alerts = []
    monkeypatch.setattr(entry, "notify_terminated", lambda proxy, err: alerts.append((proxy, err)))
    fake_runtime.fail_on["list"] = RuntimeConnectError("daemon gone")

    assert entry.main(_argv(tmp_path, "--once", "--max-failures", "0")) == 1
    assert alerts and alerts[0][0].id == PROXY_ID
