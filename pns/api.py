from __future__ import annotations

import secrets
from threading import Thread

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from . import db
from .api_models import EventModel, PlanModel, ProxyModel, StatusResponse
from .runtime import RuntimeState
from .settings import Settings, settings as default_settings

security = HTTPBasic(auto_error=False)


def create_app(state: RuntimeState, cfg: Settings | None = None) -> FastAPI:
    """Read-only status API. It never triggers a reconciliation."""
    cfg = cfg or default_settings
    app = FastAPI(title="Proxy Network Syncer")

    def require_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str | None:
        if not cfg.api_auth_enabled:
            return None
        if credentials is None or not (
            secrets.compare_digest(credentials.username, cfg.api_user or "")
            and secrets.compare_digest(credentials.password, cfg.api_password or "")
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
                headers={"WWW-Authenticate": "Basic"},
            )
        return credentials.username

    @app.get("/health")
    def health() -> dict[str, str]:
        st = state.snapshot()
        return {"status": "unhealthy" if st.phase == "terminated" else "healthy"}

    @app.get("/status", response_model=StatusResponse)
    def get_status(_user: str | None = Depends(require_user)) -> StatusResponse:
        st = state.snapshot()
        return StatusResponse(
            phase=st.phase,
            proxy=ProxyModel(id=st.proxy.id, name=st.proxy.name) if st.proxy else None,
            event_actions=list(st.event_actions),
            consecutive_failures=st.consecutive_failures,
            max_consecutive_failures=st.max_consecutive_failures,
            cycles=st.cycles,
            last_success_at=st.last_success_at,
            last_failure_at=st.last_failure_at,
            last_error=st.last_error,
            desired_networks=list(st.desired_networks),
            last_plan=PlanModel(**st.last_plan) if st.last_plan else None,
            started_at=st.started_at,
        )

    @app.get("/events", response_model=list[EventModel])
    def get_events(
        limit: int = Query(20, ge=1, le=1000),
        _user: str | None = Depends(require_user),
    ) -> list[dict]:
        return db.latest_events(limit)

    return app


def serve_in_background(state: RuntimeState, cfg: Settings | None = None) -> Thread:
    """Start uvicorn on a daemon thread; it dies with the sync loop."""
    cfg = cfg or default_settings
    server = uvicorn.Server(
        uvicorn.Config(create_app(state, cfg), host=cfg.api_host, port=cfg.api_port, log_level="warning")
    )

    def _run() -> None:
        try:
            server.run()
        finally:
            if not server.started:
                db.logger.error("Status API failed to start on %s:%s", cfg.api_host, cfg.api_port)

    db.logger.info("Starting status API on %s:%s", cfg.api_host, cfg.api_port)
    thr = Thread(target=_run, name="pns-api", daemon=True)
    thr.start()
    return thr
