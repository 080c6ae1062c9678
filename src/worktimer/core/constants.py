"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WEEKLY_HOURS = 41.0
DEFAULT_STANDARD_DAILY_HOURS = 8.0
DEFAULT_WORKING_DAYS = (True, True, True, True, True, False, False)
DEFAULT_ANNUAL_VACATION_DAYS = 25
DEFAULT_BREAK_SECONDS = 3600.0

STATUS_CHECK_INTERVAL_SECONDS = 60
DEFAULT_REMOTE_TIMEOUT_SECONDS = 30.0
REMOTE_WORKERS = 4

DEFAULT_ZONE_NAME = "WorkTimerZone"
SUBSCRIPTION_ID = "all-changes"
CURSOR_NAME = "work_records"
MAX_CURSOR_RELOADS = 3

POLICY_SETTINGS_KEY = "policy"
TIMER_SETTINGS_KEY = "timer_state"
