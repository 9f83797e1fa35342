"""
线路评论路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import async_handler, controller, get, post, use_async, validate_body
from ..core.enums import TypeStrings
from ..models import Tour
from ..web.response import ResponseWrapper
from .middlewares import login_required, validate_id


@controller("/api/v1/tours")
class TourReviewController:

    @async_handler
    @get("/:id/reviews")
    @use_async(validate_id(Tour))
    async def get_tour_reviews(self, request: Request):
        """获取线路的所有评论"""
        reviews = await get_service("review_service").list_for_tour(request.state.db, request.path_params["id"])
        return ResponseWrapper.success(reviews, count=len(reviews))

    @async_handler
    @post("/:id/reviews")
    @use_async(validate_id(Tour))
    @use_async(login_required())
    @validate_body(
        {"name": "title", "type": TypeStrings.STRING},
        {"name": "rating", "type": TypeStrings.NUMBER},
    )
    async def add_tour_review(self, request: Request):
        """为线路添加评论"""
        review = await get_service("review_service").create(
            request.state.db, request.state.user, request.path_params["id"], request.state.body
        )
        return ResponseWrapper.created(review.to_dict(), message="review successfully created")
