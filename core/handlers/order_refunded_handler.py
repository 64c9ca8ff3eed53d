"""
Handler for OrderRefunded events.

Tells the customer their refunded tickets no longer admit them.
"""

from typing import Callable

from core.events import OrderRefunded


def handle_order_refunded(email_client) -> Callable:
    """
    Factory that returns an OrderRefunded handler.

    Args:
        email_client: EmailGatewayClient instance
    """

    def handler(event: OrderRefunded):
        order = event.order
        email_client.send_email(
            to=order.customer_email,
            subject="【ご返金のお知らせ】",
            body=(
                f"{order.customer_name} 様\n\n"
                f"ご注文 {order.id} は返金されました。"
                "このご注文のチケットではご入場いただけません。"
            ),
        )

    return handler
