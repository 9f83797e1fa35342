"""
预订路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import authorize_users, controller, get, post, use_async, validate_body
from ..core.enums import TypeStrings
from ..models import UserTypes
from ..web.response import ResponseWrapper
from .middlewares import login_required


@controller("/api/v1/bookings")
class BookingController:
    """预订"""

    @get("/")
    @use_async(login_required())
    @authorize_users(UserTypes.ADMIN)
    async def get_all_bookings(self, request: Request):
        bookings = await get_service("booking_service").list(request.state.db)
        return ResponseWrapper.success(bookings, count=len(bookings))

    @get("/my-bookings")
    @use_async(login_required())
    async def get_my_bookings(self, request: Request):
        bookings = await get_service("booking_service").list_for_user(request.state.db, request.state.user)
        return ResponseWrapper.success(bookings, count=len(bookings))

    @post("/")
    @use_async(login_required())
    @validate_body(
        {"name": "tourId", "type": TypeStrings.STRING},
        {"name": "adults", "type": TypeStrings.NUMBER},
        {"name": "startDate", "type": TypeStrings.STRING},
        {"name": "endDate", "type": TypeStrings.STRING},
    )
    async def add_booking(self, request: Request):
        booking = await get_service("booking_service").create(
            request.state.db, request.state.user, request.state.body
        )
        return ResponseWrapper.created(booking.to_dict())
