"""
评论模型

评论的增删改会重新计算所属线路的评分统计
"""

from sqlalchemy import Column, Float, ForeignKey, String, Text, UniqueConstraint, event, func, inspect, select
from sqlalchemy.orm import validates

from ..web.exceptions import ModelValidationError
from .base import BaseModel, ensure_number
from .tour import Tour

DEFAULT_RATINGS_AVERAGE = 4.5


class Review(BaseModel):
    """评论模型，每个用户对同一线路只能评论一次"""
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("tour_id", "user_id", name="uq_reviews_tour_user"),
    )

    title = Column(String(30), nullable=False)
    body = Column(Text)
    rating = Column(Float, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tour_id = Column(String(36), ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)

    PROTECTED_FIELDS = ("id", "created_at", "user_id", "tour_id")

    @validates("title")
    def validate_title(self, key, value):
        if value is None:
            return value
        if not isinstance(value, str):
            raise ModelValidationError("title", "Review title must be a string", value)
        value = value.strip()
        if len(value) > 30:
            raise ModelValidationError("title", "Review title must be less than 30 characters", value)
        if len(value) < 10:
            raise ModelValidationError("title", "Review title must be more than 10 characters", value)
        return value

    @validates("body")
    def validate_body(self, key, value):
        return value.strip() if isinstance(value, str) else value

    @validates("rating")
    def validate_rating(self, key, value):
        if value is None:
            return value
        ensure_number("rating", value)
        if value < 0:
            raise ModelValidationError("rating", "Rating score must be higher than 0.0", value)
        if value > 5:
            raise ModelValidationError("rating", "Rating score must be lower than 5.0", value)
        return value


def update_tour_ratings(connection, tour_id: str) -> None:
    """
    重新计算线路的评分统计

    在 flush 过程中使用当前连接执行，与评论的写入处于同一事务
    """
    reviews = Review.__table__
    tours = Tour.__table__

    quantity, average = connection.execute(
        select(func.count(reviews.c.id), func.avg(reviews.c.rating)).where(reviews.c.tour_id == tour_id)
    ).one()

    connection.execute(
        tours.update()
        .where(tours.c.id == tour_id)
        .values(
            ratings_quantity=quantity,
            ratings_average=round(average, 1) if quantity else DEFAULT_RATINGS_AVERAGE,
        )
    )


@event.listens_for(Review, "after_insert")
@event.listens_for(Review, "after_delete")
def refresh_ratings(mapper, connection, target: Review) -> None:
    update_tour_ratings(connection, target.tour_id)


@event.listens_for(Review, "after_update")
def refresh_ratings_after_update(mapper, connection, target: Review) -> None:
    history = inspect(target).attrs.tour_id.history
    for tour_id in {target.tour_id, *(history.deleted or ())}:
        update_tour_ratings(connection, tour_id)
