"""Proxy Network Syncer (pns).

Single-host daemon that keeps one reverse-proxy container attached to every
Docker network it should serve, and detached from all others:
 - eligibility rule deciding which networks the proxy belongs to
 - full-state reconciliation (join/leave diff) on every network event
 - bounded consecutive-failure budget before the process gives up

The package talks to Docker only through pns.docker_ops.DockerRuntime;
tests swap in an in-memory runtime.
"""
