"""Exchange code routes: public validation and staff administration."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from api.base import get_client_ip, success_response
from core.models import ExchangeCodeBatchCreate, ExchangeCodeCreate, PerformerCreate


class CodeValidationRequest(BaseModel):
    codes: list[str] = Field(..., min_length=1, max_length=50)


class PerformerActiveUpdate(BaseModel):
    is_active: bool


def create_exchange_codes_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["exchange-codes"])

    code_svc = services["exchange_code"]
    rate_limiter = services["rate_limiter"]

    @router.post("/exchange-codes/validate")
    def validate_codes(request: Request, body: CodeValidationRequest):
        rate_limiter.check_rate_limit(get_client_ip(request))
        results = code_svc.validate_batch(body.codes)
        return success_response({
            "results": [r.model_dump(mode="json") for r in results],
            "valid_count": sum(1 for r in results if r.valid),
        }).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Staff routes
    # -------------------------------------------------------------------------

    @router.post("/staff/performers", status_code=201)
    def create_performer(body: PerformerCreate):
        performer = code_svc.create_performer(body)
        return success_response(performer.model_dump(mode="json")).model_dump(mode="json")

    @router.put("/staff/performers/{performer_id}/active")
    def set_performer_active(performer_id: UUID, body: PerformerActiveUpdate):
        performer = code_svc.set_performer_active(performer_id, body.is_active)
        return success_response(performer.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/staff/exchange-codes", status_code=201)
    def create_code(body: ExchangeCodeCreate):
        code = code_svc.create_code(body.performer_id, body.code)
        return success_response(code.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/staff/exchange-codes/generate", status_code=201)
    def generate_codes(body: ExchangeCodeBatchCreate):
        codes = code_svc.generate_batch(body.performer_id, body.count)
        return success_response(
            [c.model_dump(mode="json") for c in codes]
        ).model_dump(mode="json")

    @router.get("/staff/exchange-codes")
    def list_codes(performer_id: UUID | None = Query(None)):
        codes = code_svc.list_codes(performer_id)
        return success_response(
            [c.model_dump(mode="json") for c in codes]
        ).model_dump(mode="json")

    return router
