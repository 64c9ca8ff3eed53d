"""Order routes: pricing preview, checkout, and staff order management."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import get_client_ip, success_response
from core.models import (
    OrderCreate,
    OrderStatus,
    OrderStatusUpdate,
    PaymentConfirmation,
    PricePreviewRequest,
)


def create_orders_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["orders"])

    order_svc = services["order"]
    rate_limiter = services["rate_limiter"]

    def _limit_code_guessing(request: Request, codes: list[str]) -> None:
        # Each submitted code is a guess, whichever route validates it
        if codes:
            rate_limiter.check_rate_limit(get_client_ip(request))

    # -------------------------------------------------------------------------
    # Customer routes
    # -------------------------------------------------------------------------

    @router.post("/pricing/preview")
    def preview_price(request: Request, body: PricePreviewRequest):
        _limit_code_guessing(request, body.exchange_codes)
        quote, codes = order_svc.preview(body)
        return success_response({
            **quote.model_dump(mode="json"),
            "exchange_codes": [c.model_dump(mode="json") for c in codes],
        }).model_dump(mode="json")

    @router.post("/orders", status_code=201)
    def create_order(request: Request, body: OrderCreate):
        _limit_code_guessing(request, body.exchange_codes)
        # With a payment provider the customer is sent to hosted checkout
        if order_svc.payment_gateway is not None:
            checkout = order_svc.start_checkout(body)
            return success_response({
                **checkout.quote.model_dump(mode="json"),
                "session_ref": checkout.session_ref,
                "checkout_url": checkout.checkout_url,
            }).model_dump(mode="json")

        quote = order_svc.create_order(body)
        return success_response(quote.model_dump(mode="json")).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Staff routes (summary registered before the /{order_id} route)
    # -------------------------------------------------------------------------

    @router.get("/staff/orders/summary")
    def order_summary():
        summary = order_svc.paid_summary()
        return success_response(summary.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/staff/orders")
    def list_orders(
        status: OrderStatus | None = Query(None),
        limit: int = Query(200, ge=1, le=1000),
    ):
        orders = order_svc.list_orders(status=status, limit=limit)
        return success_response(
            [o.model_dump(mode="json") for o in orders]
        ).model_dump(mode="json")

    @router.get("/staff/orders/{order_id}")
    def get_order(order_id: UUID):
        order = order_svc.get(order_id)
        tickets = order_svc.get_tickets(order_id)
        return success_response({
            **order.model_dump(mode="json"),
            "tickets": [t.model_dump(mode="json") for t in tickets],
        }).model_dump(mode="json")

    @router.get("/staff/orders/{order_id}/history")
    def order_history(order_id: UUID):
        history = order_svc.get_history(order_id)
        return success_response(history).model_dump(mode="json")

    @router.put("/staff/orders/{order_id}/status")
    def set_order_status(order_id: UUID, body: OrderStatusUpdate):
        order = order_svc.set_status(order_id, body.status)
        return success_response(order.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/staff/orders/{order_id}/confirm-payment")
    def confirm_payment(order_id: UUID, body: PaymentConfirmation):
        order = order_svc.confirm_payment(
            order_id,
            body.provider_session_ref,
            body.provider_payment_ref,
        )
        tickets = order_svc.get_tickets(order_id)
        return success_response({
            **order.model_dump(mode="json"),
            "tickets": [t.model_dump(mode="json") for t in tickets],
        }).model_dump(mode="json")

    return router
