"""POST /webhooks/stripe - signature-verified payment provider callbacks."""

import logging
from uuid import UUID

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.base import success_response, error_response, ErrorCodes
from clients.stripe_client import WebhookVerificationError
from core.errors import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)


def _field(obj, key: str):
    """Read an optional field from a Stripe object or plain dict."""
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _order_id(session) -> UUID | None:
    metadata = _field(session, "metadata") or {}
    raw = _field(metadata, "order_id") or _field(session, "client_reference_id")
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


def create_webhooks_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["webhooks"])

    order_svc = services["order"]
    stripe_client = services["stripe"]

    def _handle_completed(session) -> None:
        session_ref = _field(session, "id")
        order_id = _order_id(session)
        if order_id is None:
            order = order_svc.get_by_provider_session(session_ref)
            if order is None:
                logger.error(f"Completed session {session_ref} matches no order")
                return
            order_id = order.id

        if _field(session, "payment_status") not in (None, "paid"):
            logger.info(
                f"Session {session_ref} completed without payment "
                f"({_field(session, 'payment_status')}); waiting"
            )
            return

        try:
            order_svc.confirm_payment(order_id, session_ref, _field(session, "payment_intent"))
        except NotFoundError:
            logger.error(f"Completed session {session_ref} references unknown order {order_id}")
        except InvalidTransitionError as e:
            logger.warning(f"Ignoring payment for order {order_id}: {e.message}")

    def _handle_expired(session) -> None:
        session_ref = _field(session, "id")
        logger.info(f"Checkout session expired: {session_ref}")
        order_svc.cancel_expired_session(session_ref)

    @router.post("/webhooks/stripe")
    async def stripe_webhook(request: Request):
        payload = await request.body()
        try:
            event = await run_in_threadpool(
                stripe_client.construct_event, payload, request.headers.get("Stripe-Signature")
            )
        except WebhookVerificationError as e:
            return JSONResponse(
                status_code=400,
                content=error_response(ErrorCodes.INVALID_SIGNATURE, str(e)).model_dump(mode="json"),
            )

        event_type = event["type"]
        session = event["data"]["object"]
        logger.info(f"Received Stripe event: {event_type}")

        if event_type == "checkout.session.completed":
            await run_in_threadpool(_handle_completed, session)
        elif event_type == "checkout.session.expired":
            await run_in_threadpool(_handle_expired, session)
        elif event_type == "payment_intent.payment_failed":
            logger.warning(f"Payment failed for payment intent {_field(session, 'id')}")
        else:
            logger.info(f"Unhandled event type: {event_type}")

        return success_response({"received": True}).model_dump(mode="json")

    return router
