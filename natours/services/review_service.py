"""
评论服务
"""

from typing import Any, Dict, List

from loguru import logger as loguru_logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.decorators import service
from ..models import Review, Tour, User, UserTypes
from ..web.exceptions import ConflictError, ForbiddenError, NotFoundError

logger = loguru_logger.bind(name="review_service")


@service()
class ReviewService:
    """评论服务"""

    async def list(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """
        获取所有评论，附带线路名称和作者信息

        tour: {id, name}，user: {id, name, username, photo}
        """
        statement = (
            select(Review, Tour.name, User.name, User.username, User.photo)
            .join(Tour, Review.tour_id == Tour.id)
            .join(User, Review.user_id == User.id)
            .order_by(Review.created_at.desc())
        )
        result = await session.execute(statement)

        reviews = []
        for review, tour_name, user_name, username, photo in result.all():
            item = review.to_dict()
            item["tour"] = {"id": review.tour_id, "name": tour_name}
            item["user"] = {"id": review.user_id, "name": user_name, "username": username, "photo": photo}
            reviews.append(item)
        return reviews

    async def list_for_tour(self, session: AsyncSession, tour_id: str) -> List[Dict[str, Any]]:
        result = await session.execute(
            select(Review).where(Review.tour_id == tour_id).order_by(Review.created_at.desc())
        )
        return [review.to_dict() for review in result.scalars().all()]

    async def create(self, session: AsyncSession, user: User, tour_id: Any, body: Dict[str, Any]) -> Review:
        """
        为线路添加评论

        Raises:
            NotFoundError: 线路不存在
            ConflictError: 用户已经评论过该线路
        """
        if not isinstance(tour_id, str) or await session.get(Tour, tour_id) is None:
            raise NotFoundError(f"Invalid tour id. {tour_id} does not associate with any existing tours")

        existing = await session.execute(
            select(Review.id).where(Review.tour_id == tour_id, Review.user_id == user.id)
        )
        if existing.first() is not None:
            raise ConflictError("You have already reviewed this tour")

        review = Review.from_body(body)
        review.user_id = user.id
        review.tour_id = tour_id
        session.add(review)
        await session.flush()
        logger.info(f"用户 {user.username} 评论了线路 {tour_id}")
        return review

    async def delete(self, session: AsyncSession, user: User, review_id: str) -> None:
        """删除评论，只有作者或管理员可以删除"""
        review = await session.get(Review, review_id)
        if review is None:
            raise NotFoundError(f"Invalid review id. {review_id} does not associate with any existing reviews")
        if review.user_id != user.id and user.role != UserTypes.ADMIN.value:
            raise ForbiddenError()
        await session.delete(review)
        await session.flush()
