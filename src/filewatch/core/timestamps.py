"""Fixed-width, sortable UTC timestamps with millisecond resolution."""
import re
from datetime import datetime, timezone
from typing import Optional


TIMESTAMP_LENGTH = 17
TIMESTAMP_RE = re.compile(r"[0-9]{17}")


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format an instant as YYYYMMDDHHMMSSmmm in UTC.

    Naive datetimes are taken to be UTC already. None means now.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)

    return (
        f"{moment.year:04d}{moment.month:02d}{moment.day:02d}"
        f"{moment.hour:02d}{moment.minute:02d}{moment.second:02d}"
        f"{moment.microsecond // 1000:03d}"
    )


def parse_timestamp(text: str) -> datetime:
    """Parse a timestamp produced by format_timestamp back into an aware UTC datetime."""
    if not TIMESTAMP_RE.fullmatch(text):
        raise ValueError(f"Not a {TIMESTAMP_LENGTH}-digit timestamp: {text!r}")
    parsed = datetime.strptime(text[:14], "%Y%m%d%H%M%S")
    return parsed.replace(microsecond=int(text[14:]) * 1000, tzinfo=timezone.utc)
