"""
预订服务
"""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.decorators import service
from ..models import Booking, Tour, User
from ..web.exceptions import NotFoundError


@service()
class BookingService:

    async def list(self, session: AsyncSession) -> List[Dict[str, Any]]:
        result = await session.execute(select(Booking).order_by(Booking.created_at.desc()))
        return [booking.to_dict() for booking in result.scalars().all()]

    async def list_for_user(self, session: AsyncSession, user: User) -> List[Dict[str, Any]]:
        result = await session.execute(
            select(Booking).where(Booking.user_id == user.id).order_by(Booking.start_date)
        )
        return [booking.to_dict() for booking in result.scalars().all()]

    async def create(self, session: AsyncSession, user: User, body: Dict[str, Any]) -> Booking:
        """为当前用户预订线路，线路必须存在"""
        tour_id = body.get("tourId")
        if not isinstance(tour_id, str) or await session.get(Tour, tour_id) is None:
            raise NotFoundError(f"Invalid tour id. {tour_id} does not associate with any existing tours")

        booking = Booking.from_body(body)
        booking.user_id = user.id
        booking.tour_id = tour_id
        session.add(booking)
        await session.flush()
        return booking
