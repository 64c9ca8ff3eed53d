"""
Email gateway client for ticket purchase notifications.

Requests are JSON bodies authenticated with an API key header and an
HMAC-SHA256 signature over the exact bytes sent.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """Raised when email gateway request fails."""


class EmailGatewayClient:
    """Send emails via HTTP gateway with HMAC signature verification."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: int = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the email gateway endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def _sign(self, body: str) -> str:
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            body.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _sign_and_send(self, payload: dict) -> None:
        """
        Sign payload with HMAC and send to gateway.

        Raises:
            EmailGatewayError: On any failure
        """
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": self._sign(body),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=body.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Email gateway connection failed: {e}")
            raise EmailGatewayError(f"Connection failed: {e}")

        try:
            response_data = response.json()
        except ValueError:
            logger.error(f"Email gateway returned invalid JSON: {response.text}")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Email gateway error: {error_msg}")
            raise EmailGatewayError(f"Gateway error: {error_msg}")

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Send a plain text email.

        Raises:
            EmailGatewayError: On gateway failure
        """
        self._sign_and_send({
            "type": "custom",
            "email": to,
            "subject": subject,
            "body": body,
        })
        logger.info(f"Email sent to {to}: {subject}")

    def send_purchase_confirmation(
        self,
        to: str,
        customer_name: str,
        performance_label: str,
        total_amount: int,
        ticket_codes: list[str],
        tickets_url: str,
    ) -> None:
        """
        Send the post-payment confirmation with the customer's ticket links.

        Args:
            to: Recipient email address
            customer_name: Name printed on the order
            performance_label: Human-readable performance title and date
            total_amount: Charged total in minor currency units
            ticket_codes: Codes of the issued tickets
            tickets_url: Base URL where each ticket code resolves to its QR page

        Raises:
            EmailGatewayError: On gateway failure
        """
        if not ticket_codes:
            raise ValueError("ticket_codes must not be empty")

        lines = [
            f"{customer_name} 様",
            "",
            "ご購入ありがとうございます。",
            f"公演: {performance_label}",
            f"お支払い金額: ¥{total_amount:,}",
            "",
            "チケット:",
        ]
        lines.extend(f"  {tickets_url.rstrip('/')}/{code}" for code in ticket_codes)

        self._sign_and_send({
            "type": "purchase_confirmation",
            "email": to,
            "subject": f"【チケット購入完了】{performance_label}",
            "body": "\n".join(lines),
        })
        logger.info(f"Purchase confirmation sent to {to} ({len(ticket_codes)} tickets)")
