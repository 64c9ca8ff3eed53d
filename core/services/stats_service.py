"""
Check-in statistics.

Ticket rows are the source of truth. Daily counts are a Valkey hash per
venue-local day that is rebuilt from tickets whenever it is missing,
incomplete or expired. A check-in drops its day's snapshot so the next
read recounts it.
"""

import logging
from datetime import date, datetime

from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from core.config import TicketingConfig
from core.models import DailyStats, OrderStatus, TicketTotals, TicketType
from utils.timezone import local_day_bounds, local_today, to_local

logger = logging.getLogger(__name__)


class StatsService:
    """Daily check-in counts and ticket totals."""

    KEY_PREFIX = "stats:checkins:"
    BUILT_FIELD = "built"

    def __init__(self, postgres: PostgresClient, valkey: ValkeyClient, config: TicketingConfig):
        self.postgres = postgres
        self.valkey = valkey
        self.config = config

    def _key(self, day: date) -> str:
        return f"{self.KEY_PREFIX}{day.isoformat()}"

    def today(self) -> date:
        """Current calendar date at the venue."""
        return local_today(self.config.venue_timezone)

    def today_stats(self) -> DailyStats:
        """Check-ins for the venue's current calendar day."""
        return self.day_stats(self.today())

    def day_stats(self, day: date) -> DailyStats:
        """Serve from cache when a built snapshot exists, else rebuild."""
        cached = self.valkey.hgetall(self._key(day))
        if not cached.get(self.BUILT_FIELD):
            return self.rebuild(day)

        general = int(cached.get(TicketType.GENERAL.value, 0))
        reserved = int(cached.get(TicketType.RESERVED.value, 0))
        return DailyStats(
            date=day,
            total_checked_in=general + reserved,
            general_checked_in=general,
            reserved_checked_in=reserved,
        )

    def count_from_records(self, day: date) -> DailyStats:
        """Full scan of used tickets whose used_at falls in the local day."""
        start, end = local_day_bounds(day, self.config.venue_timezone)
        rows = self.postgres.execute(
            """
            SELECT ticket_type, count(*) AS checked_in
            FROM tickets
            WHERE is_used AND used_at >= %s AND used_at < %s
            GROUP BY ticket_type
            """,
            (start, end),
        )
        counts = {row["ticket_type"]: row["checked_in"] for row in rows}
        general = counts.get(TicketType.GENERAL.value, 0)
        reserved = counts.get(TicketType.RESERVED.value, 0)
        return DailyStats(
            date=day,
            total_checked_in=general + reserved,
            general_checked_in=general,
            reserved_checked_in=reserved,
        )

    def rebuild(self, day: date | None = None) -> DailyStats:
        """Recompute a day from ticket records and replace the cached snapshot."""
        day = day or self.today()
        stats = self.count_from_records(day)
        self.valkey.hset_mapping(
            self._key(day),
            {
                self.BUILT_FIELD: "1",
                TicketType.GENERAL.value: stats.general_checked_in,
                TicketType.RESERVED.value: stats.reserved_checked_in,
            },
            expire_seconds=self.config.stats_cache_ttl_seconds,
        )
        logger.info(
            f"Rebuilt check-in stats for {day.isoformat()}: "
            f"{stats.general_checked_in} general, {stats.reserved_checked_in} reserved"
        )
        return stats

    def record_check_in(self, ticket_type: TicketType, used_at: datetime) -> None:
        """
        Drop the snapshot of the check-in's local day.

        The next read rebuilds it from tickets, so a rebuild that already
        counted this ticket is never added to.
        """
        day = to_local(used_at, self.config.venue_timezone).date()
        if self.valkey.delete(self._key(day)):
            logger.debug(f"Invalidated {ticket_type.value} check-in stats for {day.isoformat()}")

    def ticket_totals(self) -> TicketTotals:
        """All-time counts over tickets of PAID orders."""
        row = self.postgres.execute_single(
            """
            SELECT count(*) AS total,
                   count(*) FILTER (WHERE t.is_used) AS used,
                   count(*) FILTER (WHERE t.ticket_type = 'general') AS general,
                   count(*) FILTER (WHERE t.ticket_type = 'reserved') AS reserved,
                   count(*) FILTER (WHERE t.ticket_type = 'general' AND t.is_used) AS general_used,
                   count(*) FILTER (WHERE t.ticket_type = 'reserved' AND t.is_used) AS reserved_used,
                   count(*) FILTER (WHERE t.is_exchanged) AS exchanged
            FROM tickets t
            JOIN orders o ON o.id = t.order_id
            WHERE o.status = %s
            """,
            (OrderStatus.PAID.value,),
        )
        row = row or {}
        return TicketTotals(
            total=row.get("total", 0),
            used=row.get("used", 0),
            unused=row.get("total", 0) - row.get("used", 0),
            general=row.get("general", 0),
            reserved=row.get("reserved", 0),
            general_used=row.get("general_used", 0),
            reserved_used=row.get("reserved_used", 0),
            exchanged=row.get("exchanged", 0),
        )
