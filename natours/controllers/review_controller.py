"""
评论路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import async_handler, controller, delete, get, post, use_async, validate_body
from ..core.enums import TypeStrings
from ..web.response import ResponseWrapper
from .middlewares import login_required


@controller("/api/v1/review")
class ReviewController:
    """评论"""

    @async_handler
    @get("/")
    async def get_all_reviews(self, request: Request):
        """获取所有评论，附带线路名称和作者信息"""
        reviews = await get_service("review_service").list(request.state.db)
        return ResponseWrapper.success(reviews, count=len(reviews))

    @async_handler
    @post("/")
    @use_async(login_required())
    @validate_body(
        {"name": "title", "type": TypeStrings.STRING},
        {"name": "rating", "type": TypeStrings.NUMBER},
        {"name": "tourId", "type": TypeStrings.STRING},
    )
    async def add_review(self, request: Request):
        body = request.state.body
        review = await get_service("review_service").create(
            request.state.db, request.state.user, body["tourId"], body
        )
        return ResponseWrapper.created(review.to_dict(), message="review successfully created")

    @async_handler
    @delete("/:id")
    @use_async(login_required())
    async def delete_review(self, request: Request):
        """删除评论，只有作者或管理员可以删除"""
        await get_service("review_service").delete(
            request.state.db, request.state.user, request.path_params["id"]
        )
