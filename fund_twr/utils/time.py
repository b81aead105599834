"""Time utilities (Israel)."""

from datetime import datetime
from zoneinfo import ZoneInfo

IL = ZoneInfo("Asia/Jerusalem")


def now_il_naive() -> datetime:
    """
    Current time in Israel, returned as naive datetime for DB storage.
    """
    return datetime.now(IL).replace(tzinfo=None)
