import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        service_name: str,
        logs_service_url: Optional[str],
        logs_timeout_secs: float,
        team_members: list[tuple[str, str]],
        host: str,
        port: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.service_name = service_name
        self.logs_service_url = logs_service_url
        self.logs_timeout_secs = logs_timeout_secs
        self.team_members = team_members
        self.host = host
        self.port = port


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("COSTS_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def parse_team_members(raw: str) -> list[tuple[str, str]]:
    members: list[tuple[str, str]] = []
    for chunk in raw.split(","):
        name = chunk.strip()
        if not name:
            continue
        first, _, last = name.partition(" ")
        members.append((first, last.strip()))
    return members


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "costs.db"
    database_url = os.getenv("COSTS_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("COSTS_TIMEZONE", "UTC")
    service_name = os.getenv("SERVICE_NAME", "costs")
    logs_service_url = os.getenv("COSTS_LOGS_SERVICE_URL") or None
    logs_timeout_secs = float(os.getenv("COSTS_LOGS_TIMEOUT_SECS", "2"))
    team_members = parse_team_members(os.getenv("COSTS_TEAM_MEMBERS", ""))
    host = os.getenv("COSTS_HOST", "0.0.0.0")
    port = int(os.getenv("COSTS_PORT", "8000"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        service_name=service_name,
        logs_service_url=logs_service_url,
        logs_timeout_secs=logs_timeout_secs,
        team_members=team_members,
        host=host,
        port=port,
    )
