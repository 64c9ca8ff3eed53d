"""Performance listing routes (public) and performance creation (staff)."""

from uuid import UUID

from fastapi import APIRouter

from api.base import success_response
from core.models import PerformanceCreate


def create_performances_router(services: dict) -> APIRouter:
    router = APIRouter(tags=["performances"])

    performance_svc = services["performance"]

    @router.get("/performances")
    def list_performances():
        performances = performance_svc.list_on_sale()
        return success_response(
            [p.model_dump(mode="json") | {"label": p.label} for p in performances]
        ).model_dump(mode="json")

    @router.get("/performances/{performance_id}")
    def get_performance(performance_id: UUID):
        performance = performance_svc.get(performance_id)
        return success_response(
            performance.model_dump(mode="json") | {"label": performance.label}
        ).model_dump(mode="json")

    @router.post("/staff/performances", status_code=201)
    def create_performance(body: PerformanceCreate):
        performance = performance_svc.create(body)
        return success_response(performance.model_dump(mode="json")).model_dump(mode="json")

    return router
