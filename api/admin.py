"""Admin routes: users and bookings oversight."""

from fastapi import APIRouter, Depends, Query, Request

from api.base import success_response
from auth.security_middleware import require_admin
from auth.service import AuthService
from core.models import PaymentStatus
from core.services.booking_service import BookingService


def create_admin_router(auth_service: AuthService, booking_svc: BookingService) -> APIRouter:
    router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

    @router.get("/users")
    def list_users():
        users = auth_service.list_users()
        return success_response(
            [u.model_dump(mode="json") for u in users]
        ).model_dump(mode="json")

    @router.delete("/users/{user_id}")
    def delete_user(user_id: int, request: Request, admin_id: int = Depends(require_admin)):
        if user_id == admin_id:
            raise ValueError("Admins cannot delete their own account")
        auth_service.delete_user(user_id, ip_address=request.client.host if request.client else None)
        return success_response(message="User deleted").model_dump(mode="json")

    @router.post("/users/{user_id}/admin")
    def grant_admin(user_id: int):
        user = auth_service.grant_admin(user_id)
        return success_response(
            user=user.model_dump(mode="json"),
            message="Admin access granted",
        ).model_dump(mode="json")

    @router.get("/bookings")
    def list_bookings(status: PaymentStatus | None = Query(None)):
        bookings = booking_svc.list_all(payment_status=status)
        return success_response(
            [b.model_dump(mode="json") for b in bookings]
        ).model_dump(mode="json")

    @router.delete("/bookings/{booking_id}")
    def delete_booking(booking_id: int):
        booking_svc.delete(booking_id)
        return success_response(message="Booking deleted").model_dump(mode="json")

    return router
