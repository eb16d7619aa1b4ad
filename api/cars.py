"""Car inventory routes. Reads are public; writes need an admin token."""

from fastapi import APIRouter, Depends, Query

from api.base import success_response
from auth.security_middleware import require_admin
from core.models import CarCreate, CarUpdate
from core.services.car_service import CarService


def create_cars_router(car_svc: CarService) -> APIRouter:
    router = APIRouter(prefix="/cars", tags=["cars"])

    @router.get("")
    def list_cars(available: bool = Query(False)):
        cars = car_svc.list(available_only=available)
        return success_response(
            [c.model_dump(mode="json") for c in cars]
        ).model_dump(mode="json")

    @router.get("/{car_id}")
    def get_car(car_id: int):
        car = car_svc.get_by_id(car_id)
        if car is None:
            raise ValueError(f"Car {car_id} not found")
        return success_response(car.model_dump(mode="json")).model_dump(mode="json")

    @router.post("", status_code=201)
    def create_car(body: CarCreate, admin_id: int = Depends(require_admin)):
        car = car_svc.create(body)
        return success_response(
            car.model_dump(mode="json"),
            message="Car created",
        ).model_dump(mode="json")

    @router.put("/{car_id}")
    def update_car(car_id: int, body: CarUpdate, admin_id: int = Depends(require_admin)):
        car = car_svc.update(car_id, body)
        return success_response(
            car.model_dump(mode="json"),
            message="Car updated",
        ).model_dump(mode="json")

    @router.delete("/{car_id}")
    def delete_car(car_id: int, admin_id: int = Depends(require_admin)):
        car_svc.delete(car_id)
        return success_response(message="Car deleted").model_dump(mode="json")

    return router
