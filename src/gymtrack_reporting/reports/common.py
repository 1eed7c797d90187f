from datetime import datetime
from typing import Any


def envelope(name: str, subject_id: str | None, now: datetime, data: Any) -> dict[str, Any]:
    """Common wrapper around every report payload."""
    return {
        "report": name,
        "subject_id": subject_id,
        "as_of": now.isoformat(),
        "data": data,
    }
