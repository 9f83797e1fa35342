"""
旅游线路路由
"""

from fastapi import Request

from ..core.application import get_service
from ..core.decorators import (
    authorize_users,
    controller,
    delete,
    get,
    patch,
    post,
    put,
    use,
    use_async,
    validate_body,
)
from ..core.enums import TypeStrings
from ..models import Tour, UserTypes
from ..web.response import ResponseWrapper
from ..web.validation import BodyRule, max_length, min_length
from .middlewares import alias_top_tours, login_required, validate_id

TOUR_BODY = (
    BodyRule("name", TypeStrings.STRING, (min_length(10), max_length(40))),
    BodyRule("price", TypeStrings.NUMBER),
    BodyRule("difficulty", TypeStrings.STRING),
    BodyRule("duration", TypeStrings.NUMBER),
)


@controller("/api/v1/tours")
class TourController:
    """旅游线路"""

    @get("/")
    async def get_tours(self, request: Request):
        """
        获取线路列表

        支持 ?difficulty=easy&price[lte]=500&sort=price&fields=name,price&page=1&limit=10
        """
        tours = await get_service("tour_service").list(request.state.db, request.state.query)
        return ResponseWrapper.success(tours, count=len(tours))

    @get("/top-5-cheap")
    @use(alias_top_tours)
    async def get_top_tours(self, request: Request):
        """评分最高且价格最低的 5 条线路"""
        return await self.get_tours(request)

    @get("/tour-stats")
    async def get_tour_stats(self, request: Request):
        stats = await get_service("tour_service").stats(request.state.db)
        return ResponseWrapper.success(stats)

    @get("/:id")
    @use_async(validate_id(Tour))
    async def get_tour(self, request: Request):
        tour = await get_service("tour_service").get(request.state.db, request.path_params["id"])
        return ResponseWrapper.success(tour.to_dict())

    @post("/")
    @use_async(login_required())
    @authorize_users(UserTypes.LEAD_GUIDE, UserTypes.ADMIN)
    @validate_body(*TOUR_BODY)
    async def add_tour(self, request: Request):
        tour = await get_service("tour_service").create(request.state.db, request.state.body)
        return ResponseWrapper.created(tour.to_dict())

    @patch("/:id")
    @use_async(validate_id(Tour))
    async def edit_tour(self, request: Request):
        tour = await get_service("tour_service").update(
            request.state.db, request.path_params["id"], request.state.body or {}
        )
        return ResponseWrapper.success(tour.to_dict())

    @put("/:id")
    @use_async(validate_id(Tour))
    @validate_body(*TOUR_BODY)
    async def update_tour(self, request: Request):
        tour = await get_service("tour_service").replace(
            request.state.db, request.path_params["id"], request.state.body
        )
        return ResponseWrapper.success(tour.to_dict())

    @delete("/:id")
    @use_async(validate_id(Tour))
    async def delete_tour(self, request: Request):
        await get_service("tour_service").delete(request.state.db, request.path_params["id"])
