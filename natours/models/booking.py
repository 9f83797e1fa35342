"""
预订模型
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import validates

from ..utils.common import parse_datetime
from ..web.exceptions import ModelValidationError
from .base import BaseModel, ensure_number


class Booking(BaseModel):
    """预订模型"""
    __tablename__ = "bookings"

    adults = Column(Integer, nullable=False)
    children = Column(Integer, nullable=False, default=0)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tour_id = Column(String(36), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text)

    PROTECTED_FIELDS = ("id", "created_at", "user_id", "tour_id")

    @validates("adults", "children")
    def validate_people(self, key, value):
        if value is None:
            return value
        ensure_number(key, value)
        if value < 0 or (key == "adults" and value < 1):
            raise ModelValidationError(key, f"{key} must be a positive number", value)
        return int(value)

    @validates("start_date", "end_date")
    def validate_date(self, key, value):
        if value is None:
            return value
        parsed = parse_datetime(value)
        if parsed is None:
            field = "startDate" if key == "start_date" else "endDate"
            raise ModelValidationError(field, f"{value} is not a valid date", value)
        return parsed

    @validates("description")
    def validate_description(self, key, value):
        return value.strip() if isinstance(value, str) else value


@event.listens_for(Booking, "before_insert")
@event.listens_for(Booking, "before_update")
def check_booking_dates(mapper, connection, target: Booking) -> None:
    """结束日期不能早于开始日期"""
    if target.start_date and target.end_date and target.end_date < target.start_date:
        raise ModelValidationError("endDate", "end date must not be before the start date")
