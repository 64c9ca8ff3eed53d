"""
Handler for TicketCheckedIn events.

Invalidates the cached daily check-in counts. A missed invalidation only
delays accuracy until the snapshot expires and is rebuilt from tickets.
"""

from typing import Callable

from core.events import TicketCheckedIn


def handle_ticket_checked_in(stats_service) -> Callable:
    """
    Factory that returns a TicketCheckedIn handler.

    Args:
        stats_service: StatsService instance
    """

    def handler(event: TicketCheckedIn):
        ticket = event.ticket
        stats_service.record_check_in(ticket.ticket_type, ticket.used_at)

    return handler
