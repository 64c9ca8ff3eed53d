"""
Stripe client for hosted checkout sessions and webhook verification.

Thin wrapper around the stripe library. The API key is passed per call
instead of through the module-global stripe.api_key so several clients can
coexist (tests, multiple accounts). Failures surface as PaymentGatewayError;
nothing is retried here.
"""

import logging
from dataclasses import dataclass
from typing import Any

import stripe

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the payment provider rejects or cannot serve a request."""


class WebhookVerificationError(PaymentGatewayError):
    """Webhook payload is malformed or its signature does not verify."""


@dataclass(frozen=True)
class LineItem:
    """One chargeable line on the hosted checkout page."""
    name: str
    unit_amount: int
    quantity: int


@dataclass(frozen=True)
class CheckoutSession:
    """Provider session created for an order."""
    session_ref: str
    url: str


class StripeClient:
    """Create checkout sessions and verify webhook callbacks."""

    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "jpy"):
        if not secret_key:
            raise ValueError("secret_key is required")
        if not webhook_secret:
            raise ValueError("webhook_secret is required")

        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self.currency = currency

    def create_checkout_session(
        self,
        order_id: str,
        line_items: list[LineItem],
        customer_email: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a hosted checkout session for an order.

        The order id travels in metadata and client_reference_id so the
        webhook can find the order without trusting the redirect.

        Raises:
            ValueError: If there is nothing to charge
            PaymentGatewayError: If Stripe rejects the request or is unreachable
        """
        chargeable = [item for item in line_items if item.quantity > 0 and item.unit_amount > 0]
        if not chargeable:
            raise ValueError("Checkout requires at least one chargeable line item")

        try:
            session = stripe.checkout.Session.create(
                api_key=self._secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": item.name},
                            "unit_amount": item.unit_amount,
                        },
                        "quantity": item.quantity,
                    }
                    for item in chargeable
                ],
                customer_email=customer_email,
                client_reference_id=order_id,
                metadata={"order_id": order_id},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session creation failed for order {order_id}: {e}")
            raise PaymentGatewayError(f"Checkout session creation failed: {e}")

        logger.info(f"Stripe checkout session {session.id} created for order {order_id}")
        return CheckoutSession(session_ref=session.id, url=session.url)

    def construct_event(self, payload: bytes, sig_header: str | None) -> Any:
        """
        Verify a webhook delivery and return the parsed event.

        Raises:
            WebhookVerificationError: Missing header, bad payload or bad signature
        """
        if not sig_header:
            raise WebhookVerificationError("Missing Stripe-Signature header")

        try:
            return stripe.Webhook.construct_event(payload, sig_header, self._webhook_secret)
        except ValueError as e:
            logger.warning(f"Invalid Stripe webhook payload: {e}")
            raise WebhookVerificationError("Invalid payload")
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Invalid Stripe webhook signature: {e}")
            raise WebhookVerificationError("Invalid signature")
