"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, to_local, parse_iso, local_today, local_day_bounds
from utils.staff_context import (
    get_current_staff_id,
    get_optional_staff_id,
    set_current_staff_id,
    clear_current_staff_id,
    staff_context,
)
