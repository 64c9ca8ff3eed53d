"""
Handler for OrderPaid events.

Emails the customer their ticket links once the order has committed as PAID.
"""

import logging
from typing import Callable

from core.events import OrderPaid

logger = logging.getLogger(__name__)


def handle_order_paid(email_client, config) -> Callable:
    """
    Factory that returns an OrderPaid handler.

    Args:
        email_client: EmailGatewayClient instance
        config: TicketingConfig (for the public ticket URL)

    Returns:
        Handler callable that sends the purchase confirmation
    """

    def handler(event: OrderPaid):
        order = event.order
        label = event.performance.label if event.performance is not None else str(order.performance_id)

        email_client.send_purchase_confirmation(
            to=order.customer_email,
            customer_name=order.customer_name,
            performance_label=label,
            total_amount=order.total_amount,
            ticket_codes=[ticket.code for ticket in event.tickets],
            tickets_url=config.tickets_url,
        )

    return handler
