from __future__ import annotations

from pydantic import BaseModel, Field


class ProxyModel(BaseModel):
    id: str
    name: str


class PlanModel(BaseModel):
    desired: list[str] = Field(default_factory=list)
    to_join: list[str] = Field(default_factory=list)
    to_leave: list[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    phase: str = Field(..., description="starting|idle|reconciling|terminated")
    proxy: ProxyModel | None = None
    event_actions: list[str] = Field(default_factory=list)
    consecutive_failures: int = Field(0, ge=0)
    max_consecutive_failures: int = Field(0, ge=0)
    cycles: int = Field(0, ge=0)
    last_success_at: str | None = None
    last_failure_at: str | None = None
    last_error: str | None = None
    desired_networks: list[str] = Field(default_factory=list)
    last_plan: PlanModel | None = None
    started_at: str


class EventModel(BaseModel):
    id: int
    ts: str
    level: str
    network_id: str | None = None
    message: str
