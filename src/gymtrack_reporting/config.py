import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    database_url: str | None = None
    log_format: str = "json"
    log_level: str = "INFO"
    trends_days: int = 7
    history_months: int = 12
    recent_checkins: int = 5
    default_session_hours: float = 2.0
    default_capacity: int = 100
    expiring_soon_days: int = 14

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            log_format=os.environ.get("GYMTRACK_LOG_FORMAT", "json"),
            log_level=os.environ.get("GYMTRACK_LOG_LEVEL", "INFO"),
            trends_days=int(os.environ.get("GYMTRACK_TRENDS_DAYS", "7")),
            history_months=int(os.environ.get("GYMTRACK_HISTORY_MONTHS", "12")),
            recent_checkins=int(os.environ.get("GYMTRACK_RECENT_CHECKINS", "5")),
            default_session_hours=float(os.environ.get("GYMTRACK_SESSION_HOURS", "2.0")),
            default_capacity=int(os.environ.get("GYMTRACK_DEFAULT_CAPACITY", "100")),
            expiring_soon_days=int(os.environ.get("GYMTRACK_EXPIRING_SOON_DAYS", "14")),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("DATABASE_URL must be set")
        return self.database_url
