"""Calendar-week window helpers for the weekly digest.

Weeks run Monday 00:00:00 through Sunday 23:59:59 in one fixed time zone.
"""

from dataclasses import dataclass
from datetime import date
from datetime import datetime
from datetime import time
from datetime import timedelta
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError


DEFAULT_TIMEZONE = "America/Los_Angeles"
END_OF_DAY = time(23, 59, 59, 999999)


#============================================
@dataclass(frozen=True)
class Window:
	start: datetime
	end: datetime
	label: str


#============================================
def resolve_timezone(name: str, log_fn=None) -> ZoneInfo:
	"""
	Resolve a zone object from an IANA name with safe fallback.

	An unknown name falls back to DEFAULT_TIMEZONE and is reported
	through log_fn when one is given.
	"""
	value = (name or "").strip() or DEFAULT_TIMEZONE
	try:
		return ZoneInfo(value)
	except (ZoneInfoNotFoundError, ValueError):
		if log_fn is not None:
			log_fn(f"Unknown time zone {value!r}; falling back to {DEFAULT_TIMEZONE}")
		return ZoneInfo(DEFAULT_TIMEZONE)


#============================================
def week_start_date(day: date) -> date:
	"""
	Return the Monday of the week containing day.
	"""
	# weekday() is Monday=0 .. Sunday=6, so Sunday stays in the week it ends
	return day - timedelta(days=day.weekday())


#============================================
def format_window_label(start_day: date, end_day: date) -> str:
	"""
	Render the stable YYYY-MM-DD ~ YYYY-MM-DD label.
	"""
	return f"{start_day.isoformat()} ~ {end_day.isoformat()}"


#============================================
def resolve_week_window(now: datetime, tz: ZoneInfo) -> Window:
	"""
	Compute the Monday-to-Sunday window containing now in zone tz.

	Boundaries are built from calendar dates rather than by subtracting
	hours, so a DST change inside the week keeps both ends on local midnight.

	Args:
		now: timezone-aware current instant.
		tz: zone used for day boundaries.

	Returns:
		Window with local start, local end and a date label.
	"""
	if now.tzinfo is None:
		raise RuntimeError("now must be timezone-aware")
	now_local = now.astimezone(tz)
	monday = week_start_date(now_local.date())
	sunday = monday + timedelta(days=6)
	start = datetime.combine(monday, time(0, 0, 0), tzinfo=tz)
	end = datetime.combine(sunday, END_OF_DAY, tzinfo=tz)
	label = format_window_label(monday, sunday)
	return Window(start=start, end=end, label=label)


#============================================
def format_git_time(value: datetime) -> str:
	"""
	Render one boundary for git --since/--until with its UTC offset.
	"""
	# git date parsing has one-second resolution
	return value.strftime("%Y-%m-%d %H:%M:%S %z")
