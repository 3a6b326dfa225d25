# packcontrol/utils/dates.py
from datetime import datetime
from typing import Optional

from fastapi import HTTPException


def parse_iso(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Parse a date or datetime query parameter, answering 400 when it is malformed."""
    if not value:
        return None
    # A bare YYYY-MM-DD upper bound covers the whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59.999999"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad date format: {value}")
