from __future__ import annotations

import os
from dataclasses import dataclass

# Docker network event actions the loop may subscribe to.
KNOWN_EVENT_ACTIONS = ("create", "destroy", "connect", "disconnect")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_event_actions(raw: str) -> tuple[str, ...]:
    """Split a comma separated action list, e.g. "connect, disconnect".

    Raises ValueError on an empty list or an action Docker does not emit for networks.
    """
    actions = tuple(dict.fromkeys(a.strip().lower() for a in raw.split(",") if a.strip()))
    if not actions:
        raise ValueError("At least one network event action is required.")
    unknown = [a for a in actions if a not in KNOWN_EVENT_ACTIONS]
    if unknown:
        raise ValueError(
            f"Unknown network event action(s): {', '.join(unknown)}. "
            f"Choose from {', '.join(KNOWN_EVENT_ACTIONS)}."
        )
    return actions


@dataclass(frozen=True)
class Settings:
    # Core
    proxy_container: str = os.getenv("PNS_PROXY_CONTAINER", "reverse-proxy")
    event_actions: str = os.getenv("PNS_EVENT_ACTIONS", "connect,disconnect")
    max_consecutive_failures: int = _env_int("PNS_MAX_CONSECUTIVE_FAILURES", 10)
    resubscribe_delay_s: float = _env_float("PNS_RESUBSCRIBE_DELAY_S", 1.0)
    db_path: str = os.getenv("PNS_DB_PATH", "pns.db")
    log_level: str = os.getenv("PNS_LOG_LEVEL", "INFO")

    # Status API
    api_enabled: bool = _env_bool("PNS_API_ENABLED", True)
    api_host: str = os.getenv("PNS_API_HOST", "0.0.0.0")
    api_port: int = _env_int("PNS_API_PORT", 8089)
    api_user: str | None = os.getenv("PNS_API_USER")
    api_password: str | None = os.getenv("PNS_API_PASSWORD")

    # Email alerting (optional)
    enable_email: bool = _env_bool("PNS_ENABLE_EMAIL", False)
    smtp_host: str = os.getenv("PNS_SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = _env_int("PNS_SMTP_PORT", 587)
    smtp_user: str | None = os.getenv("PNS_SMTP_USER")
    smtp_password: str | None = os.getenv("PNS_SMTP_PASSWORD")
    email_from: str | None = os.getenv("PNS_EMAIL_FROM")
    email_to: str | None = os.getenv("PNS_EMAIL_TO")

    @property
    def api_auth_enabled(self) -> bool:
        return bool(self.api_user and self.api_password)


settings = Settings()
