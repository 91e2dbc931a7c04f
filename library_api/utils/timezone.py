from datetime import date, datetime
import pytz

from library_api.config import settings

LIBRARY_TZ = pytz.timezone(settings.library_timezone)

def now_local() -> datetime:
    """Get current datetime in the library's timezone."""
    return datetime.now(LIBRARY_TZ)

def today_local() -> date:
    """Calendar date at the library. Due dates and lateness are counted in these days."""
    return now_local().date()
