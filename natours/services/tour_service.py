"""
旅游线路服务
"""

from typing import Any, Dict, List

from loguru import logger as loguru_logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.decorators import service
from ..models import Tour
from ..web.exceptions import NotFoundError
from ..web.operations import APIOperations

logger = loguru_logger.bind(name="tour_service")

# PUT 请求整体替换的字段
REPLACEABLE_FIELDS = ("name", "price", "ratingsAverage", "difficulty", "duration", "maxGroupSize", "summary", "description")

STATS_MIN_RATING = 4.5


@service()
class TourService:
    """旅游线路服务"""

    async def list(self, session: AsyncSession, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """按查询参数过滤、排序、选择字段并分页"""
        operations = APIOperations(Tour, query).filter().sort().limit_fields().paginate()
        return await operations.all(session)

    async def get(self, session: AsyncSession, tour_id: str) -> Tour:
        tour = await session.get(Tour, tour_id)
        if tour is None:
            raise NotFoundError(f"Invalid tour id. {tour_id} does not associate with any existing tours")
        return tour

    async def create(self, session: AsyncSession, body: Dict[str, Any]) -> Tour:
        tour = Tour.from_body(body)
        session.add(tour)
        await session.flush()
        logger.info(f"新线路: {tour.name}")
        return tour

    async def update(self, session: AsyncSession, tour_id: str, body: Dict[str, Any]) -> Tour:
        """部分更新"""
        tour = await self.get(session, tour_id)
        tour.apply(body)
        await session.flush()
        return tour

    async def replace(self, session: AsyncSession, tour_id: str, body: Dict[str, Any]) -> Tour:
        """整体替换，请求体中缺少的可选字段被清空"""
        tour = await self.get(session, tour_id)
        values = {field: body.get(field) for field in REPLACEABLE_FIELDS}
        if values["ratingsAverage"] is None:
            values.pop("ratingsAverage")
        tour.apply(values)
        await session.flush()
        return tour

    async def delete(self, session: AsyncSession, tour_id: str) -> None:
        tour = await self.get(session, tour_id)
        await session.delete(tour)
        await session.flush()
        logger.info(f"线路已删除: {tour.name}")

    async def stats(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """按难度统计评分不低于 4.5 的线路"""
        statement = (
            select(
                Tour.difficulty,
                func.count(Tour.id),
                func.sum(Tour.ratings_quantity),
                func.avg(Tour.ratings_average),
                func.avg(Tour.price),
                func.min(Tour.price),
                func.max(Tour.price),
            )
            .where(Tour.ratings_average >= STATS_MIN_RATING)
            .group_by(Tour.difficulty)
            .order_by(func.avg(Tour.price))
        )
        result = await session.execute(statement)
        return [
            {
                "difficulty": difficulty,
                "numTours": num_tours,
                "numRatings": num_ratings or 0,
                "avgRating": round(avg_rating, 2),
                "avgPrice": round(avg_price, 2),
                "minPrice": min_price,
                "maxPrice": max_price,
            }
            for difficulty, num_tours, num_ratings, avg_rating, avg_price, min_price, max_price in result.all()
        ]
