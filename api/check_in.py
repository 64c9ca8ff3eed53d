"""Door staff routes: check-in, verification preview and stats."""

from fastapi import APIRouter

from api.base import success_response
from core.models import CheckInRequest


def create_check_in_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["check-in"])

    check_in_svc = services["check_in"]
    stats_svc = services["stats"]

    @router.post("/staff/check-in")
    def check_in(body: CheckInRequest):
        result = check_in_svc.check_in(body.code)
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/staff/tickets/{code}/verify")
    def verify_ticket(code: str):
        verification = check_in_svc.verify(code)
        return success_response(verification.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/staff/stats/today")
    def today_stats():
        stats = stats_svc.today_stats()
        return success_response(stats.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/staff/stats/tickets")
    def ticket_totals():
        totals = stats_svc.ticket_totals()
        return success_response(totals.model_dump(mode="json")).model_dump(mode="json")

    return router
